from .order_models import MerchandiseOrder, MerchandiseOrderItem
