from .order_viewsets import MerchandiseOrderViewSet
