"""Prompt templates for the generative insight endpoints"""
import json

REPORT_TYPES = ('weekly', 'forecast', 'performance')


def _money(value):
    return f"${float(value):,.2f}"


def _product_rows(products):
    return [
        {
            'name': p.name,
            'sku': p.sku,
            'category': p.category,
            'price': str(p.price),
            'quantity': p.quantity,
            'reorder_level': p.reorder_level,
            'supplier': p.supplier.name if p.supplier_id else None,
        }
        for p in products
    ]


def _order_rows(orders):
    return [
        {
            'id': o.pk,
            'customer': o.customer_name,
            'total_amount': str(o.total_amount),
            'status': o.status,
            'created_at': o.created_at.isoformat(),
            'items': [{'product': i.product_name, 'quantity': i.quantity} for i in o.items.all()],
        }
        for o in orders
    ]


def query_prompt(query, context):
    return (
        f'You are INVENTRA AI. Answer this question about inventory: "{query}"\n\n'
        f"Data:\n"
        f"- Products: {context['total_products']}\n"
        f"- Low Stock: {context['low_stock_items']}\n"
        f"- Orders: {context['total_orders']}\n"
        f"- Value: {_money(context['total_value'])}\n\n"
        f"Provide helpful insights."
    )


def report_prompt(report_type, products, orders):
    """
    Prompt for one of the report types. Anything outside REPORT_TYPES gets
    the general status report.
    """
    if report_type == 'weekly':
        data = {'products': _product_rows(products[:20]), 'orders': _order_rows(orders[:50])}
        instruction = ("Generate a comprehensive weekly inventory report based on this data. "
                       "Include trends, alerts, and recommendations.")
    elif report_type == 'forecast':
        data = {'products': _product_rows(products), 'orders': _order_rows(orders)}
        instruction = ("Create a demand forecast report for the next 30 days based on historical data. "
                       "Include predicted stock needs and reorder recommendations.")
    elif report_type == 'performance':
        data = {'products': _product_rows(products), 'orders': _order_rows(orders)}
        instruction = ("Analyze product performance and create a detailed report with insights "
                       "on best/worst performers.")
    else:
        data = {'products': _product_rows(products[:10])}
        instruction = "Generate a general inventory status report."
    return f"{instruction}\n\nData:\n{json.dumps(data, indent=2)}"


def demand_prompt(product, history, days):
    """``history`` is a list of (created_at, quantity) pairs for the product"""
    lines = '\n'.join(f"- {created_at.date().isoformat()}: {quantity} unit(s)" for created_at, quantity in history)
    return (
        f"Analyze this product's sales history and predict demand for the next {days} days:\n\n"
        f"Product: {json.dumps(_product_rows([product])[0], indent=2)}\n"
        f"Order History:\n{lines or '- no orders yet'}\n\n"
        f"Provide:\n"
        f"1. Predicted daily demand\n"
        f"2. Recommended reorder quantity\n"
        f"3. Optimal reorder timing\n"
        f"4. Risk assessment\n"
        f"5. Seasonal factors to consider\n\n"
        f"Format as JSON with specific numbers."
    )


def smart_insights_prompt(data):
    categories = '\n'.join(
        f"- {name}: {row['count']} items, {_money(row['value'])} value, {row['low_stock']} low stock"
        for name, row in data['categories'].items()
    )
    return (
        "Analyze this inventory data and provide 4 smart business insights:\n\n"
        "INVENTORY OVERVIEW:\n"
        f"- Total Products: {data['total_products']}\n"
        f"- Total Value: {_money(data['total_value'])}\n"
        f"- Low Stock Items: {data['low_stock_count']}\n"
        f"- Critical Stock: {data['critical_stock_count']}\n\n"
        "CATEGORY BREAKDOWN:\n"
        f"{categories or '- no products'}\n\n"
        "SALES DATA:\n"
        f"- Total Orders: {data['total_orders']}\n"
        f"- Recent Orders (7 days): {data['recent_orders_count']}\n"
        f"- Average Order Value: {_money(data['avg_order_value'])}\n\n"
        "SUPPLIERS:\n"
        f"- Total Suppliers: {data['supplier_count']}\n"
        f"- Average Rating: {data['avg_supplier_rating']:.1f}\n\n"
        "Provide exactly 4 insights in this format:\n"
        "1. [TREND/ALERT/OPTIMIZATION/RECOMMENDATION]: Brief insight about the data\n"
        "2. [TREND/ALERT/OPTIMIZATION/RECOMMENDATION]: Brief insight about the data\n"
        "3. [TREND/ALERT/OPTIMIZATION/RECOMMENDATION]: Brief insight about the data\n"
        "4. [TREND/ALERT/OPTIMIZATION/RECOMMENDATION]: Brief insight about the data\n\n"
        "Focus on actionable insights, stock alerts, sales trends, and optimization opportunities."
    )


def _manager_section(data):
    return (
        "OPERATIONAL METRICS:\n"
        f"- Total Orders: {data['total_orders']}\n"
        f"- Weekly Orders: {data['weekly_orders']}\n"
        f"- Pending Orders: {data['pending_orders']}\n"
        f"- Processing Orders: {data['processing_orders']}\n"
        f"- Average Order Value: {_money(data['avg_order_value'])}\n"
        f"- Low Stock Items: {data['low_stock_count']}\n"
        f"- Critical Stock Items: {data['critical_stock_count']}\n"
        f"- Active Suppliers: {data['supplier_count']}\n"
    )


def _staff_section(data):
    critical = ', '.join(
        f"{item['name']} ({item['quantity']}/{item['reorder_level']})" for item in data['critical_items']
    )
    priority = ', '.join(
        f"{order['customer']} ({_money(order['amount'])})" for order in data['priority_orders']
    )
    return (
        "URGENT TASKS:\n"
        f"- Critical Stock Items: {data['critical_stock_count']}\n"
        f"- Pending Orders: {data['pending_orders_count']}\n"
        f"- Today's Orders: {data['today_orders_count']}\n"
        f"- Total Urgent Tasks: {data['urgent_tasks_count']}\n\n"
        f"CRITICAL ITEMS: {critical or 'none'}\n"
        f"PRIORITY ORDERS: {priority or 'none'}\n"
    )


def role_prompt(role, data):
    if role == 'manager':
        return (
            "As an inventory manager, analyze this operational data and provide 4 concise "
            "management insights (max 80 characters each):\n\n"
            f"{_manager_section(data)}\n"
            "Focus on: team efficiency, workflow optimization, resource allocation, and operational improvements.\n"
            "Format: [PRIORITY/WORKFLOW/TEAM/ALERT]: brief actionable insight (max 80 chars)"
        )
    if role == 'staff':
        return (
            "As warehouse staff, analyze these urgent tasks and provide 4 immediate action items:\n\n"
            f"{_staff_section(data)}\n"
            "Focus on: immediate actions, task prioritization, safety checks, and customer service.\n"
            "Format: [URGENT/RESTOCK/ORDER/CHECK]: specific task with clear action"
        )
    return (
        "As the administrator of this inventory system, review operations and floor tasks "
        "and provide 4 executive insights:\n\n"
        f"{_manager_section(data)}\n"
        f"{_staff_section(data)}\n"
        "Focus on: business risk, stock exposure, order throughput, and supplier coverage.\n"
        "Format: [RISK/STOCK/ORDERS/SUPPLIERS]: brief actionable insight"
    )
