from rest_framework import status
from rest_framework.exceptions import APIException


class InsufficientStock(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Insufficient stock.'
    default_code = 'insufficient_stock'

    def __init__(self, product=None, requested=None, detail=None):
        if detail is None and product is not None:
            detail = f"Insufficient stock for {product.name}: requested {requested}, available {product.quantity}"
        super().__init__(detail=detail)
        self.product_id = getattr(product, 'id', None)
