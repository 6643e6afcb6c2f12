from fastapi import Request

from product_api.repositories import ProductStore


def get_store(request: Request) -> ProductStore:
    return request.app.state.store
