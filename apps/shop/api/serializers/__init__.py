from .order_serializers import *
