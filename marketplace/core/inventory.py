# marketplace/core/inventory.py
"""
Variant and stock helpers shared by products, cart and checkout.

A product either sells a flat stock (`quantity` / `stock`) or a list of
variant combinations, each identified by a key built from its selections:

    selections = [{"name": "Color", "value": "Red"}, {"name": "Size", "value": "M"}]
    key        = "Color:Red|Size:M"

Everything here is pure: callers pass a Product (or anything with the same
attributes) and persist the result themselves.
"""

from typing import Any, Iterable

from sqlmodel import SQLModel


def round2(value: float) -> float:
    """Round a money amount to two decimals."""
    return round(float(value), 2)


class VariantOption(SQLModel):
    """
    Outcome of resolving a buyer's variant selection against a product.

    `ok=False` carries a human-readable `message`; otherwise `price`,
    `quantity` and `sku` describe the option that will be sold.

    `stock_key` names the stock the option draws from: the matched
    combination's key, or "" when it sells from the product's flat stock
    (several selections can share that one pool).
    """

    ok: bool
    message: str = ""
    selections: list[dict[str, str]] = []
    key: str = ""
    stock_key: str = ""
    price: float = 0.0
    quantity: int = 0
    sku: str = ""


def normalize_selected_variants(selected: Any) -> list[dict[str, str]]:
    """
    Accept `[{"name": .., "value": ..}]` or `{"name": "value"}` and return a
    trimmed list sorted by name, with incomplete entries dropped.
    """
    if not selected:
        return []

    if isinstance(selected, dict):
        pairs = [(name, value) for name, value in selected.items()]
    elif isinstance(selected, (list, tuple)):
        pairs = []
        for item in selected:
            if isinstance(item, dict):
                pairs.append((item.get("name"), item.get("value")))
            else:
                pairs.append((getattr(item, "name", None), getattr(item, "value", None)))
    else:
        return []

    normalized = []
    for name, value in pairs:
        name = str(name or "").strip()
        value = str(value or "").strip()
        if name and value:
            normalized.append({"name": name, "value": value})

    return sorted(normalized, key=lambda item: item["name"])


def build_variant_key(selected: Any) -> str:
    normalized = normalize_selected_variants(selected)
    return "|".join(f"{item['name']}:{item['value']}" for item in normalized)


def _to_int(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def normalize_variant_combinations(combinations: Iterable[Any] | None) -> list[dict]:
    """
    Normalize seller-supplied combinations.

    - selections are normalized and the key derived from them
    - combinations without selections are dropped
    - duplicate keys are merged (quantities summed, first price/sku kept)
    """
    if not combinations:
        return []

    merged: dict[str, dict] = {}
    for combo in combinations:
        if not isinstance(combo, dict):
            combo = combo.model_dump() if hasattr(combo, "model_dump") else {}

        selections = normalize_selected_variants(combo.get("selections"))
        if not selections:
            continue

        key = build_variant_key(selections)
        price = combo.get("price")
        entry = {
            "key": key,
            "selections": selections,
            "quantity": _to_int(combo.get("quantity")),
            "price": float(price) if price is not None else None,
            "sku": str(combo.get("sku") or "").strip(),
        }

        if key not in merged:
            merged[key] = entry
            continue

        prev = merged[key]
        prev["quantity"] += entry["quantity"]
        if not prev["sku"] and entry["sku"]:
            prev["sku"] = entry["sku"]
        if prev["price"] is None and entry["price"] is not None:
            prev["price"] = entry["price"]

    return list(merged.values())


def sync_product_stock(product) -> None:
    """
    Recompute the aggregate stock of a product.

    With combinations, quantity and stock are the sum over all combinations;
    without, stock mirrors the flat quantity.
    """
    combinations = normalize_variant_combinations(product.variant_combinations)
    if combinations:
        total = sum(combo["quantity"] for combo in combinations)
        product.variant_combinations = combinations
        product.quantity = total
        product.stock = total
        return

    product.stock = _to_int(product.quantity)


def check_variant_setup(variants: list[dict] | None, combinations: Any) -> str | None:
    """
    Return why a product's combinations do not fit its variant groups, or
    None when they do. Each combination must pick one declared option of
    every group, otherwise buyers could never select it.
    """
    combos = normalize_variant_combinations(combinations)
    if not combos:
        return None

    groups = {
        str(g.get("name") or "").strip(): {
            str(o.get("value") or "").strip() for o in g.get("options") or []
        }
        for g in variants or []
    }
    if not groups:
        return "Variant combinations require variant groups"

    for combo in combos:
        chosen = {s["name"]: s["value"] for s in combo["selections"]}
        if set(chosen) != set(groups) or any(
            value not in groups[name] for name, value in chosen.items()
        ):
            return f"Combination {combo['key']} does not match the product variants"
    return None


def find_variant_option(product, selected: Any) -> VariantOption:
    """
    Resolve a variant selection to a sellable option.

    Rules:
      - products without variant groups only accept an empty selection and
        sell from the flat price / stock
      - otherwise every group must be selected with a known value
      - when combinations are configured, the selection must match one of
        them; its quantity (and price, if set) win over the product's
    """
    normalized = normalize_selected_variants(selected)
    groups = product.variants or []
    flat_quantity = _to_int(product.quantity if product.quantity else product.stock)

    if not groups:
        if normalized:
            return VariantOption(ok=False, message="This product does not support variants")
        return VariantOption(
            ok=True,
            price=float(product.price or 0),
            quantity=flat_quantity,
        )

    if len(normalized) != len(groups):
        return VariantOption(ok=False, message="Please select all required product variants")

    option_skus: list[str] = []
    for choice in normalized:
        group = next((g for g in groups if g.get("name") == choice["name"]), None)
        if group is None:
            return VariantOption(ok=False, message=f"Invalid variant name: {choice['name']}")

        option = next(
            (o for o in group.get("options") or [] if o.get("value") == choice["value"]),
            None,
        )
        if option is None:
            return VariantOption(
                ok=False,
                message=f'Invalid option "{choice["value"]}" for {choice["name"]}',
            )
        if option.get("sku"):
            option_skus.append(option["sku"])

    key = build_variant_key(normalized)
    combinations = normalize_variant_combinations(product.variant_combinations)

    if not combinations:
        return VariantOption(
            ok=True,
            selections=normalized,
            key=key,
            price=float(product.price or 0),
            quantity=flat_quantity,
            sku="|".join(option_skus),
        )

    matched = next((c for c in combinations if c["key"] == key), None)
    if matched is None:
        return VariantOption(ok=False, message="This variant combination is not configured")

    price = matched["price"] if matched["price"] is not None else product.price
    return VariantOption(
        ok=True,
        selections=normalized,
        key=key,
        stock_key=key,
        price=float(price or 0),
        quantity=matched["quantity"],
        sku=matched["sku"] or "|".join(option_skus),
    )
