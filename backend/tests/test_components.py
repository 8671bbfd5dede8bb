"""
UI components: escaping, formatting, forms, toasts and role navigation.
"""

import pytest

from backend.identity_access.domain import BUYER, FARMER, GODOWN_ADMIN, Identity
from backend.web.components.base import Component
from backend.web.components.cards import CardGrid, DataTable, ListingCard, MetaItem
from backend.web.components.flash import FlashMessage, FlashStore, ToastStack
from backend.web.components.forms import MapPickerField, PostButton, SignupForm, ToolForm, error_text
from backend.web.components.navigation import Navigation


def _user(role: str) -> Identity:
    return Identity(id="u1", full_name="Ali <Khan>", email="ali@example.com", role=role)


def test_amount_and_kg_formatting():
    assert Component.amount(1250) == "Rs 1,250.00"
    assert Component.amount("n/a") == "-"
    assert Component.kg(100) == "100 kg"
    assert Component.kg(12.5) == "12.50 kg"
    assert Component.kg(None) == "-"


def test_listing_card_escapes_text():
    html = ListingCard(
        "<script>x</script>",
        badge="on trip",
        meta_items=[MetaItem("Driver", "<b>Imran</b>")],
    ).render()
    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "&lt;b&gt;Imran&lt;/b&gt;" in html
    assert 'class="badge badge--on-trip"' in html


def test_data_table_empty_and_actions():
    assert "No sales yet." in DataTable(["A"], [], empty_text="No sales yet.").render()
    html = DataTable(["Product"], [["<Rice>"]], actions=['<button>Go</button>']).render()
    assert "&lt;Rice&gt;" in html
    assert "<button>Go</button>" in html
    assert 'class="sr-only">Actions' in html


def test_card_grid_empty_text():
    assert "No tools listed yet." in CardGrid([], empty_text="No tools listed yet.").render()


def test_post_button_carries_csrf_and_confirm():
    html = PostButton("/marketplace/tools/t1/delete", "Delete", "tok-1", confirm="Delete this tool?").render()
    assert 'method="post"' in html
    assert 'action="/marketplace/tools/t1/delete"' in html
    assert 'name="csrf_token" value="tok-1"' in html
    assert 'data-confirm="Delete this tool?"' in html


def test_record_form_renders_fields_values_and_map_picker():
    html = ToolForm("tok", values={"tool_name": "Rotavator", "location_lat": 31.5}).render()
    assert 'action="/marketplace/tools"' in html
    assert 'value="Rotavator"' in html
    assert 'name="csrf_token" value="tok"' in html
    assert "data-map-picker" in html
    assert 'value="31.5"' in html


def test_map_picker_defaults_to_country_center():
    picker = MapPickerField()
    assert "mlat=30.3753" in picker.osm_link()
    assert "#map=6/" in picker.osm_link()
    assert "#map=14/" in MapPickerField(lat=31.5, lng=74.3).osm_link()


def test_signup_godown_fieldset_hidden_unless_admin_selected():
    assert 'data-role-section="godown_admin" hidden' in SignupForm("tok").render()
    shown = SignupForm("tok", values={"role": GODOWN_ADMIN, "godown_name": "Store"}).render()
    assert 'data-role-section="godown_admin" hidden' not in shown
    assert 'value="Store"' in shown


def test_signup_never_echoes_password():
    html = SignupForm("tok", values={"password": "secret123"}, error="email_taken").render()
    assert "secret123" not in html
    assert "An account with this email already exists." in html


@pytest.mark.parametrize(
    "code,text",
    [
        ("cart_empty", "Your cart is empty."),
        ("missing_product_name", "Please fill in product name."),
        ("invalid_quantity_kg", "Please check quantity kg."),
        ("item_not_available", "Item not available."),
        (None, None),
    ],
)
def test_error_text(code, text):
    assert error_text(code) == text


def test_flash_store_is_one_shot_per_session():
    store = FlashStore()
    store.push("s1", "Saved.", "success")
    store.push("s1", "Odd kind", "loud")
    store.push(None, "ignored")
    assert store.pop("s1") == [FlashMessage("Saved.", "success"), FlashMessage("Odd kind", "info")]
    assert store.pop("s1") == []


def test_toast_stack_roles():
    html = ToastStack([FlashMessage("Nope <b>", "error"), FlashMessage("Fine", "success")]).render()
    assert 'class="toast toast--error" role="alert"' in html
    assert 'class="toast toast--success" role="status"' in html
    assert "Nope &lt;b&gt;" in html


@pytest.mark.parametrize(
    "role,present,absent",
    [
        (FARMER, ["/dashboard", "/storage", "/dashboard/farmgpt", "/settings"], ["/buyer/cart", "/requests"]),
        (BUYER, ["/buyer", "/buyer/cart", "/profile"], ["/storage", "/settings", "/admin"]),
        (GODOWN_ADMIN, ["/admin", "/requests", "/godowns", "/market"], ["/buyer", "/storage"]),
    ],
)
def test_navigation_links_per_role(role, present, absent):
    html = Navigation(_user(role), "/", csrf_token="tok").render()
    for href in present:
        assert f'href="{href}"' in html
    for href in absent:
        assert f'href="{href}"' not in html
    assert 'action="/logout"' in html
    assert "Ali &lt;Khan&gt;" in html


def test_navigation_marks_longest_prefix_active():
    html = Navigation(_user(FARMER), "/marketplace/tools", csrf_token="tok").render_aside()
    assert 'href="/marketplace/tools" hx-get="/marketplace/tools" hx-target="#main-content" hx-push-url="true" class="sidebar-link active" aria-current="page"' in html
    assert html.count('aria-current="page"') == 1


def test_anonymous_navigation_shows_public_links():
    html = Navigation(None, "/login").render()
    assert 'href="/login"' in html
    assert 'href="/signup"' in html
    assert "/logout" not in html


def test_oob_aside_marker():
    assert 'hx-swap-oob="true"' in Navigation(_user(BUYER), "/buyer").render_aside(oob=True)
    assert "hx-swap-oob" not in Navigation(_user(BUYER), "/buyer").render_aside()
