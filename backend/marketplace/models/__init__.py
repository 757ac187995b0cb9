# Models package init: importing it registers every table on Base.metadata
from marketplace.models.account import Admin, Customer, Supplier
from marketplace.models.category import Category
from marketplace.models.product import Product, ProductSupplier

__all__ = ["Admin", "Customer", "Supplier", "Category", "Product", "ProductSupplier"]
