"""Canned MoySklad API payloads for integration tests."""

from __future__ import annotations

from typing import Any

BASE_URL = "https://api.moysklad.ru/api/remap/1.2"
PRODUCT_URL = f"{BASE_URL}/entity/product"

CONTEXT = {
    "employee": {
        "meta": {
            "href": f"{BASE_URL}/context/employee",
            "type": "employee",
            "mediaType": "application/json",
        }
    }
}

NOT_FOUND_RESPONSE = {
    "errors": [
        {
            "error": "Объект не найден",
            "code": 1021,
            "moreInfo": "https://dev.moysklad.ru/doc/api/remap/1.2/#error-1021",
        }
    ]
}

VALIDATION_ERROR_RESPONSE = {
    "errors": [
        {"error": "Ошибка формата фильтрации", "code": 1002},
        {"error": "Неизвестный параметр", "code": 1000},
    ]
}

UNAUTHORIZED_RESPONSE = {
    "errors": [{"error": "Ошибка аутентификации", "code": 1056}]
}

TOO_MANY_REQUESTS_RESPONSE = {
    "errors": [{"error": "Превышено ограничение на количество запросов", "code": 1049}]
}


def product_page(total: int, limit: int, offset: int) -> dict[str, Any]:
    """One page of a synthetic product collection of ``total`` rows."""

    rows = [
        {"id": f"product-{index}", "name": f"Product {index}"}
        for index in range(offset, min(offset + limit, total))
    ]
    return {
        "context": CONTEXT,
        "meta": {
            "href": PRODUCT_URL,
            "type": "product",
            "size": total,
            "limit": limit,
            "offset": offset,
        },
        "rows": rows,
    }
