from datetime import datetime


def _iso(value):
    return value.isoformat() if isinstance(value, datetime) else value


def serialize_product(product: dict, seller: dict | None = None) -> dict:
    stock = product.get("stock", 0)
    images = product.get("images") or []
    return {
        "id": product["_id"],
        "name": product.get("name"),
        "description": product.get("description"),
        "price": product.get("price"),
        "stock": stock,
        "is_sold_out": stock <= 0,
        "status": product.get("status"),
        "seller_id": product.get("seller_id"),
        "seller_name": seller.get("name") if seller else None,
        "category_id": product.get("category_id"),
        "sub_category_id": product.get("sub_category_id"),
        "commission_percent": product.get("commission_percent"),
        "weight_kg": product.get("weight_kg"),
        "images": images,
        "image_url": images[0] if images else "",
        "selected_attributes": product.get("selected_attributes", []),
        "rejection_reason": product.get("rejection_reason"),
        "created_at": _iso(product.get("created_at")),
        "updated_at": _iso(product.get("updated_at")),
    }


def serialize_order_item(item: dict) -> dict:
    return {
        "product_id": item["product_id"],
        "seller_id": item.get("seller_id"),
        "name": item.get("name") or "Unknown Product",
        "image_url": item.get("image_url") or "",
        "category_id": item.get("category_id"),
        "price": float(item.get("price", 0)),
        "quantity": int(item.get("quantity", 0)),
        "total": float(item.get("line_total", item.get("price", 0) * item.get("quantity", 0))),
        "commission_percent": item.get("commission_percent"),
        "commission_amount": item.get("commission_amount"),
    }


def serialize_order(order: dict, include_items: bool = True, user: dict | None = None) -> dict:
    data = {
        "id": order["_id"],
        "user_id": order["user_id"],
        "user_name": user.get("name") if user else None,
        "user_email": user.get("email") if user else None,
        "total_amount": float(order.get("total_amount", 0)),
        "items_subtotal": float(order.get("items_subtotal", 0)),
        "delivery_charge_amount": float(order.get("delivery_charge_amount", 0)),
        "platform_commission": float(order.get("platform_commission", 0)),
        "status": order["status"],
        "payment_status": order.get("payment_status"),
        "shipping_address": order.get("shipping_address"),
        "shipping_method_name": order.get("shipping_method_name"),
        "created_at": _iso(order.get("created_at")),
        "updated_at": _iso(order.get("updated_at")),
        "delivered_at": _iso(order.get("delivered_at")),
    }
    if include_items:
        data["items"] = [serialize_order_item(i) for i in order.get("items", [])]
    return data


def serialize_user(user: dict) -> dict:
    return {
        "id": user["_id"],
        "name": user.get("name"),
        "email": user.get("email"),
        "phone_number": user.get("phone_number"),
        "is_admin": bool(user.get("is_admin")),
        "created_at": _iso(user.get("created_at")),
    }
