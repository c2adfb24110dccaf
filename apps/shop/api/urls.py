from rest_framework.routers import SimpleRouter

from apps.shop.api.views import MerchandiseOrderViewSet

merchandise_router = SimpleRouter()
merchandise_router.register(r'', MerchandiseOrderViewSet, basename='merchandise-order')
