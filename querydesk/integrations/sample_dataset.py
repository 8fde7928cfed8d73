"""Fixed sample tables served by the mock query engine.

The rows are exposed through read-only views: tables are tuples and every row
is a ``MappingProxyType``. Callers that need to transform rows must copy them
first (see :func:`copy_rows`).
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

_USERS: list[dict[str, Any]] = [
    {"id": 1, "name": "Zhang San", "email": "zhangsan@example.com", "age": 28,
     "department": "Engineering", "created_at": "2023-01-15 10:30:00"},
    {"id": 2, "name": "Li Si", "email": "lisi@example.com", "age": 32,
     "department": "Product", "created_at": "2023-02-20 14:20:00"},
    {"id": 3, "name": "Wang Wu", "email": "wangwu@example.com", "age": 25,
     "department": "Design", "created_at": "2023-03-10 09:15:00"},
    {"id": 4, "name": "Zhao Liu", "email": "zhaoliu@example.com", "age": 30,
     "department": "Engineering", "created_at": "2023-01-25 16:45:00"},
    {"id": 5, "name": "Qian Qi", "email": "qianqi@example.com", "age": 27,
     "department": "Marketing", "created_at": "2023-04-05 11:30:00"},
    {"id": 6, "name": "Sun Ba", "email": "sunba@example.com", "age": 29,
     "department": "Human Resources", "created_at": "2023-02-15 13:20:00"},
    {"id": 7, "name": "Zhou Jiu", "email": "zhoujiu@example.com", "age": 31,
     "department": "Finance", "created_at": "2023-03-20 08:45:00"},
    {"id": 8, "name": "Wu Shi", "email": "wushi@example.com", "age": 26,
     "department": "Engineering", "created_at": "2023-04-12 15:10:00"},
    {"id": 9, "name": "Zheng Shiyi", "email": "zhengshiyi@example.com", "age": 33,
     "department": "Product", "created_at": "2023-01-08 12:00:00"},
    {"id": 10, "name": "Wang Shier", "email": "wangshier@example.com", "age": 24,
     "department": "Design", "created_at": "2023-05-01 10:30:00"},
]

_ORDERS: list[dict[str, Any]] = [
    {"id": 1, "user_id": 1, "product": "MacBook Pro", "price": 12999.0, "quantity": 1,
     "order_date": "2023-06-01", "status": "completed"},
    {"id": 2, "user_id": 2, "product": "iPhone 14", "price": 5999.0, "quantity": 2,
     "order_date": "2023-06-02", "status": "shipped"},
    {"id": 3, "user_id": 3, "product": "iPad Air", "price": 4399.0, "quantity": 1,
     "order_date": "2023-06-03", "status": "processing"},
    {"id": 4, "user_id": 1, "product": "AirPods Pro", "price": 1999.0, "quantity": 1,
     "order_date": "2023-06-04", "status": "completed"},
    {"id": 5, "user_id": 4, "product": "Mac Studio", "price": 14999.0, "quantity": 1,
     "order_date": "2023-06-05", "status": "shipped"},
    {"id": 6, "user_id": 5, "product": "Apple Watch", "price": 2999.0, "quantity": 1,
     "order_date": "2023-06-06", "status": "completed"},
    {"id": 7, "user_id": 2, "product": "MacBook Air", "price": 8999.0, "quantity": 1,
     "order_date": "2023-06-07", "status": "processing"},
    {"id": 8, "user_id": 6, "product": "iMac", "price": 9999.0, "quantity": 1,
     "order_date": "2023-06-08", "status": "completed"},
]

_PRODUCTS: list[dict[str, Any]] = [
    {"id": 1, "name": "MacBook Pro", "category": "Laptop", "price": 12999.0, "stock": 50,
     "description": "Professional-grade laptop"},
    {"id": 2, "name": "iPhone 14", "category": "Phone", "price": 5999.0, "stock": 100,
     "description": "Latest smartphone"},
    {"id": 3, "name": "iPad Air", "category": "Tablet", "price": 4399.0, "stock": 75,
     "description": "Thin and light tablet"},
    {"id": 4, "name": "AirPods Pro", "category": "Headphones", "price": 1999.0, "stock": 200,
     "description": "Noise-cancelling wireless earbuds"},
    {"id": 5, "name": "Apple Watch", "category": "Watch", "price": 2999.0, "stock": 80,
     "description": "Smart wearable device"},
]

_DESCRIPTIONS = {
    "users": "User accounts",
    "orders": "Customer orders",
    "products": "Product catalogue",
}


def _freeze(rows: list[dict[str, Any]]) -> tuple[Mapping[str, Any], ...]:
    return tuple(MappingProxyType(dict(row)) for row in rows)


SAMPLE_TABLES: Mapping[str, tuple[Mapping[str, Any], ...]] = MappingProxyType(
    {
        "users": _freeze(_USERS),
        "orders": _freeze(_ORDERS),
        "products": _freeze(_PRODUCTS),
    }
)


def get_table(name: str) -> tuple[Mapping[str, Any], ...] | None:
    """Return the read-only rows for *name* (case-insensitive), or ``None``."""

    return SAMPLE_TABLES.get(name.strip().lower())


def copy_rows(rows: tuple[Mapping[str, Any], ...]) -> list[dict[str, Any]]:
    """Return a mutable working copy of *rows*."""

    return [dict(row) for row in rows]


def table_names() -> list[str]:
    return list(SAMPLE_TABLES)


def table_schema() -> dict[str, dict[str, Any]]:
    """Describe each sample table's columns for the editor's schema panel."""

    schema: dict[str, dict[str, Any]] = {}
    for name, rows in SAMPLE_TABLES.items():
        columns = list(rows[0].keys()) if rows else []
        schema[name] = {"columns": columns, "description": _DESCRIPTIONS.get(name, "")}
    return schema


def sample_queries() -> list[dict[str, str]]:
    """Example statements that run against the sample tables."""

    return [
        {"title": "All users", "sql": "SELECT * FROM users;"},
        {
            "title": "Engineering staff",
            "sql": "SELECT name, email, age FROM users WHERE department = 'Engineering';",
        },
        {
            "title": "Users older than 30",
            "sql": "SELECT name, age FROM users WHERE age > 30 ORDER BY age DESC;",
        },
        {
            "title": "Completed orders",
            "sql": "SELECT * FROM orders WHERE status = 'completed' LIMIT 5;",
        },
        {
            "title": "Product stock",
            "sql": "SELECT name, price, stock FROM products WHERE stock > 50;",
        },
        {"title": "Fuzzy name search", "sql": "SELECT * FROM users WHERE name LIKE '%Zhang%';"},
    ]
