import uuid

from marketplace.core.inventory import (
    build_variant_key,
    check_variant_setup,
    find_variant_option,
    normalize_selected_variants,
    normalize_variant_combinations,
    round2,
    sync_product_stock,
)
from marketplace.models.product import Product


def _product(**kwargs) -> Product:
    defaults = dict(seller_id=uuid.uuid4(), title="Mug", price=8.0, quantity=4, stock=4)
    defaults.update(kwargs)
    return Product(**defaults)


SIZES = [{"name": "Size", "options": [{"value": "S"}, {"value": "M", "sku": "M-OPT"}]}]
COLORS = [{"name": "Color", "options": [{"value": "Red"}, {"value": "Blue"}]}]


def test_round2():
    assert round2(1 / 3) == 0.33
    assert round2(3) == 3.0


def test_normalize_selected_variants_sorts_trims_and_drops_empty():
    selected = [
        {"name": " Size ", "value": "M "},
        {"name": "Color", "value": "Red"},
        {"name": "Material", "value": ""},
    ]

    assert normalize_selected_variants(selected) == [
        {"name": "Color", "value": "Red"},
        {"name": "Size", "value": "M"},
    ]


def test_normalize_selected_variants_accepts_mapping():
    assert normalize_selected_variants({"Size": "M", "Color": "Red"}) == [
        {"name": "Color", "value": "Red"},
        {"name": "Size", "value": "M"},
    ]
    assert normalize_selected_variants(None) == []


def test_variant_key_is_order_independent():
    a = build_variant_key([{"name": "Size", "value": "M"}, {"name": "Color", "value": "Red"}])
    b = build_variant_key([{"name": "Color", "value": "Red"}, {"name": "Size", "value": "M"}])

    assert a == b == "Color:Red|Size:M"


def test_normalize_combinations_merges_duplicates():
    combos = normalize_variant_combinations(
        [
            {"selections": [{"name": "Size", "value": "M"}], "quantity": 2},
            {"selections": [{"name": "Size", "value": "M"}], "quantity": "3", "price": 9, "sku": "X"},
            {"selections": [], "quantity": 10},
        ]
    )

    assert combos == [
        {
            "key": "Size:M",
            "selections": [{"name": "Size", "value": "M"}],
            "quantity": 5,
            "price": 9.0,
            "sku": "X",
        }
    ]


def test_sync_product_stock_sums_combinations():
    product = _product(
        variants=SIZES,
        variant_combinations=[
            {"selections": [{"name": "Size", "value": "S"}], "quantity": 2},
            {"selections": [{"name": "Size", "value": "M"}], "quantity": 7},
        ],
    )

    sync_product_stock(product)

    assert product.quantity == 9
    assert product.stock == 9


def test_sync_product_stock_without_combinations_mirrors_quantity():
    product = _product(quantity=6, stock=1)

    sync_product_stock(product)

    assert product.stock == 6


def test_flat_product_rejects_variant_selection():
    option = find_variant_option(_product(), [{"name": "Size", "value": "M"}])

    assert not option.ok
    assert option.message == "This product does not support variants"


def test_flat_product_uses_flat_price_and_stock():
    option = find_variant_option(_product(price=8.0, quantity=4), [])

    assert option.ok
    assert option.price == 8.0
    assert option.quantity == 4
    assert option.key == ""


def test_missing_group_selection():
    product = _product(variants=SIZES + COLORS)

    option = find_variant_option(product, [{"name": "Size", "value": "S"}])

    assert option.message == "Please select all required product variants"


def test_unknown_name_and_value():
    product = _product(variants=SIZES)

    assert find_variant_option(product, {"Fit": "S"}).message == "Invalid variant name: Fit"
    assert find_variant_option(product, {"Size": "XL"}).message == 'Invalid option "XL" for Size'


def test_groups_without_combinations_fall_back_to_flat_stock():
    product = _product(variants=SIZES, quantity=4)

    option = find_variant_option(product, {"Size": "M"})

    assert option.ok
    assert option.quantity == 4
    assert option.key == "Size:M"
    assert option.sku == "M-OPT"


def test_combination_price_and_stock_win():
    product = _product(
        variants=SIZES,
        variant_combinations=[
            {"selections": [{"name": "Size", "value": "S"}], "quantity": 2, "price": 7.5, "sku": "S-1"},
        ],
    )

    option = find_variant_option(product, {"Size": "S"})

    assert option.ok
    assert option.price == 7.5
    assert option.quantity == 2
    assert option.sku == "S-1"


def test_unconfigured_combination():
    product = _product(
        variants=SIZES,
        variant_combinations=[{"selections": [{"name": "Size", "value": "S"}], "quantity": 2}],
    )

    option = find_variant_option(product, {"Size": "M"})

    assert option.message == "This variant combination is not configured"


def test_stock_key_names_the_stock_pool():
    flat = _product(variants=SIZES)
    combo = _product(
        variants=SIZES,
        variant_combinations=[{"selections": [{"name": "Size", "value": "S"}], "quantity": 2}],
    )

    assert find_variant_option(flat, {"Size": "S"}).stock_key == ""
    assert find_variant_option(flat, {"Size": "M"}).stock_key == ""
    assert find_variant_option(combo, {"Size": "S"}).stock_key == "Size:S"


def test_check_variant_setup():
    size_s = [{"selections": [{"name": "Size", "value": "S"}], "quantity": 1}]
    two_groups = SIZES + COLORS

    assert check_variant_setup(SIZES, size_s) is None
    assert check_variant_setup(SIZES, []) is None
    assert check_variant_setup([], []) is None
    assert check_variant_setup([], size_s) == "Variant combinations require variant groups"
    assert (
        check_variant_setup(two_groups, size_s)
        == "Combination Size:S does not match the product variants"
    )
    assert (
        check_variant_setup(COLORS, size_s)
        == "Combination Size:S does not match the product variants"
    )
