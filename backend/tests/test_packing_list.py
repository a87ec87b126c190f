from types import SimpleNamespace

from storefront.services.packing_list import build_packing_list_pdf

CAMPAIGN = SimpleNamespace(
    name="Spring Kit 2026",
    ship_to_name="Riverside FC Clubhouse",
    ship_to_address="1 Pitch Lane\nRiverside",
    ship_to_phone="555-0100",
)


def order(n, quantity, customization=None):
    product = SimpleNamespace(title="Training Tee")
    variant = SimpleNamespace(sku="L-BLU-X1Y2", option_combo={"Size": "L", "Color": "Blue"}, product=product)
    item = SimpleNamespace(variant=variant, variant_id="v-1", quantity=quantity, customization_value=customization)
    return SimpleNamespace(
        order_number=f"SQ-{n:08d}",
        customer_name="Ana Silva",
        customer_email="ana.silva@riversidefc.org",
        customer_phone=None,
        items=[item],
    )


def test_packing_list_is_a_pdf():
    pdf = build_packing_list_pdf(CAMPAIGN, [order(1, 2, "SILVA 7"), order(2, 1)])
    assert pdf.startswith(b"%PDF")
    assert pdf.rstrip().endswith(b"%%EOF")


def test_many_orders_render():
    short = build_packing_list_pdf(CAMPAIGN, [order(1, 1)])
    long = build_packing_list_pdf(CAMPAIGN, [order(i, 1, "NAME") for i in range(200)])
    assert long.startswith(b"%PDF")
    assert len(long) > len(short)


def test_empty_campaign_still_renders():
    assert build_packing_list_pdf(CAMPAIGN, []).startswith(b"%PDF")
