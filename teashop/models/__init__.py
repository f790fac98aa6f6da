"""Database models for the tea shop service"""

from teashop.models.product import (
    TeaType,
    Product,
    StockAdjustment
)

from teashop.models.customer import (
    Customer,
    Feedback
)

from teashop.models.order import (
    OrderStatus,
    Order,
    OrderItem
)

from teashop.models.user import (
    UserRole,
    User,
    UserSession
)
