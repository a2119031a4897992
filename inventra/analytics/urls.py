from django.urls import path
from .views import (
    dashboard, ai_insights, inventory_report, predict_demand,
    smart_insights, role_insights,
)

urlpatterns = [
    path('analytics/dashboard/', dashboard, name='analytics-dashboard'),
    path('analytics/ai-insights/', ai_insights, name='analytics-ai-insights'),
    path('analytics/report/<str:report_type>/', inventory_report, name='analytics-report'),
    path('analytics/predict-demand/', predict_demand, name='analytics-predict-demand'),
    path('analytics/smart-insights/', smart_insights, name='analytics-smart-insights'),
    path('analytics/role-insights/<str:role>/', role_insights, name='analytics-role-insights'),
]
