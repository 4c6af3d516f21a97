"""
Data warehouse models and report definitions shared by the test suite.
"""

from sqlalchemy import Float, ForeignKey, Integer, String, select
from sqlalchemy.orm import Mapped, mapped_column

from reportable.core.database import DWBase
from reportable.query.source import SqlAlchemyQuerySource
from reportable.reporting import ReportDefinition, register_report


# ===== DATA WAREHOUSE MODELS =====


class User(DWBase):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(20))
    role: Mapped[str] = mapped_column(String(20))


class Product(DWBase):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    sku: Mapped[str] = mapped_column(String(50))
    price: Mapped[float] = mapped_column(Float)
    stock: Mapped[int] = mapped_column(Integer)
    category: Mapped[str] = mapped_column(String(50))


class Order(DWBase):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"))
    quantity: Mapped[int] = mapped_column(Integer)


USERS = [
    dict(id=1, name="Alice Smith", email="alice@example.com", status="active", role="admin"),
    dict(id=2, name="Bob Jones", email="bob@example.com", status="active", role="user"),
    dict(id=3, name="Carol White", email="carol@example.com", status="inactive", role="user"),
    dict(id=4, name="Dave Brown", email="dave@example.com", status="active", role="editor"),
    dict(id=5, name="Eve Black", email="eve@example.com", status="pending", role="user"),
]

PRODUCTS = [
    dict(id=1, name="Laptop", sku="ELEC-001", price=999.99, stock=10, category="Electronics"),
    dict(id=2, name="Headphones", sku="ELEC-002", price=49.99, stock=50, category="Electronics"),
    dict(id=3, name="Monitor", sku="ELEC-003", price=249.5, stock=15, category="Electronics"),
    dict(id=4, name="Desk", sku="FURN-001", price=150.0, stock=5, category="Furniture"),
    dict(id=5, name="Mug", sku="KITCH-001", price=9.99, stock=100, category="Kitchen"),
]

ORDERS = [
    dict(id=1, user_id=1, product_id=1, quantity=1),
    dict(id=2, user_id=2, product_id=2, quantity=3),
    dict(id=3, user_id=1, product_id=5, quantity=4),
]


# ===== REPORTS =====


@register_report(name="users")
class UserReport(ReportDefinition):
    def query(self):
        return select(User.id, User.name, User.email, User.status, User.role).order_by(User.id)

    def filename(self):
        return "users.csv"

    def map_headers(self):
        return {
            "id": "ID",
            "name": "Full Name",
            "email": "Email Address",
            "status": "Status",
            "role": "Role",
        }


@register_report(name="products")
class ProductReport(ReportDefinition):
    def __init__(self, category=None):
        self.category = category

    def query(self):
        statement = select(
            Product.id, Product.name, Product.sku, Product.price, Product.stock, Product.category
        ).order_by(Product.id)
        if self.category:
            statement = statement.where(Product.category == self.category)
        return statement

    def filename(self):
        return f"products-{(self.category or 'all').lower()}.csv"

    def map_headers(self):
        return {
            "id": "Product ID",
            "name": "Product Name",
            "sku": "SKU",
            "price": "Price",
            "stock": "Stock Level",
            "category": "Category",
        }

    def arguments(self):
        return {"category": self.category}


@register_report(name="order-summary")
class OrderSummaryReport(ReportDefinition):
    def query(self):
        return (
            select(
                Order.id.label("order_id"),
                User.name.label("customer"),
                Product.name.label("product"),
                Order.quantity,
            )
            .join(User, Order.user_id == User.id)
            .join(Product, Order.product_id == Product.id)
            .order_by(Order.id)
        )

    def map_headers(self):
        return {"order_id": "Order", "customer": "Customer"}


class FlakySource(SqlAlchemyQuerySource):
    """Serves the first chunk, then loses its connection."""

    def apply_predicate(self, predicate):
        return FlakySource(super().apply_predicate(predicate).statement, self.session)

    def fetch_chunk(self, size, offset):
        if offset > 0:
            raise RuntimeError("connection lost")
        return super().fetch_chunk(size, offset)


@register_report(name="flaky-users")
class FlakyUserReport(UserReport):
    def query_source(self, session):
        return FlakySource(self.query(), session)
