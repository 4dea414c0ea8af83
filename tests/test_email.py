"""Email templates, order notifications, batch reminders and send logs."""

from datetime import datetime

from fastapi import status

from order_dashboard.db.models import Buyer, Order
from order_dashboard.integrations.mailer import SMTPMailer, html_to_text
from order_dashboard.services.email_service import (
    DEFAULT_TEMPLATES,
    EmailService,
    build_order_variables,
    render_template,
    resolve_recipient,
)


def test_render_template_leaves_unknown_tokens():
    rendered = render_template(
        "Hi {{buyer_name}}, order {{order_ref}} {{missing}} {{empty}}",
        {"buyer_name": "Ana", "order_ref": "ORD-1", "empty": None},
    )
    assert rendered == "Hi Ana, order ORD-1 {{missing}} {{empty}}"


def test_build_order_variables():
    order = Order(
        id=5,
        order_ref="ORD-555",
        buyer="Harbor Goods",
        order_date=datetime(2024, 3, 1, 9, 30),
        total_topay=1000.0,
        deposit_25=0.0,
    )
    variables = build_order_variables(
        order,
        payment_link_base_url="https://pay.example.com/orders/",
        company_name="Nordic Ceramics",
    )

    assert variables["buyer_name"] == "Harbor Goods"
    assert variables["order_date"] == "2024-03-01"
    assert variables["total_amount"] == "1000.00"
    assert variables["deposit_amount"] == "250.00"
    assert variables["remaining_amount"] == "1000.00"
    assert variables["payment_link"] == "https://pay.example.com/orders/5"
    assert variables["estimated_ship_date"] == "To be determined"
    assert variables["tracking_number"] == "Not available yet"
    assert variables["company_name"] == "Nordic Ceramics"


def test_resolve_recipient_prefers_delivery_contact():
    order = Order(order_ref="ORD-1", buyer="X", email="order@example.com")
    buyer = Buyer(name="X", email="buyer@example.com", delivery_contact_email="dock@example.com")

    assert resolve_recipient(order, buyer) == "dock@example.com"
    buyer.delivery_contact_email = None
    assert resolve_recipient(order, buyer) == "buyer@example.com"
    assert resolve_recipient(order, None) == "order@example.com"
    assert resolve_recipient(Order(order_ref="ORD-2", buyer="Y"), None) is None


def test_html_to_text():
    assert html_to_text("<h1>Title</h1>\n<p>Line one<br>Line two</p>") == "Title\nLine one\nLine two"


async def test_mailer_without_host_reports_failure():
    mailer = SMTPMailer(host=None, from_address="orders@example.com")
    assert mailer.enabled is False

    success, message = await mailer.send("buyer@example.com", "Subject", "<p>Body</p>")
    assert success is False
    assert "SMTP_HOST" in message


async def test_default_templates_are_seeded_once(session, fake_mailer):
    service = EmailService(session, fake_mailer)

    created = await service.ensure_default_templates()
    assert sorted(created) == sorted(DEFAULT_TEMPLATES)
    assert await service.ensure_default_templates() == []


def test_list_and_update_templates(client):
    templates = client.get("/api/emails/templates").json()["templates"]
    assert {t["type"] for t in templates} == set(DEFAULT_TEMPLATES)

    saved = client.put(
        "/api/emails/templates/deposit_reminder",
        json={"subject": "Deposit for {{order_ref}}", "content": "<p>Please pay {{deposit_amount}}</p>"},
    )
    assert saved.status_code == status.HTTP_200_OK
    assert saved.json()["subject"] == "Deposit for {{order_ref}}"

    unknown = client.put("/api/emails/templates/newsletter", json={"subject": "s", "content": "c"})
    assert unknown.status_code == status.HTTP_400_BAD_REQUEST

    empty = client.put("/api/emails/templates/deposit_reminder", json={"subject": "", "content": "c"})
    assert empty.status_code == status.HTTP_400_BAD_REQUEST


def test_send_template_email_logs_and_stamps_order(client, create_order, fake_mailer):
    order = create_order(email="buyer@harbor.example", total_topay=1000.0)

    response = client.post(
        "/api/emails/send", json={"order_id": order["id"], "template_type": "deposit_reminder"}
    )
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    assert body["log"]["status"] == "sent"
    assert body["log"]["recipient"] == "buyer@harbor.example"

    sent = fake_mailer.sent[0]
    assert sent["to"] == "buyer@harbor.example"
    assert sent["subject"] == f"Deposit Required: {order['order_ref']}"
    assert "250.00" in sent["html"]
    assert f"https://pay.example.com/orders/{order['id']}" in sent["html"]
    assert "{{" not in sent["html"]

    refreshed = client.get(f"/api/orders/{order['id']}").json()
    assert refreshed["deposit_reminder_sent"] is not None
    assert refreshed["payment_confirmation_sent"] is None


def test_failed_send_is_logged(client, create_order, fake_mailer):
    order = create_order(email="buyer@harbor.example")
    fake_mailer.fail = True

    response = client.post(
        "/api/emails/send", json={"order_id": order["id"], "template_type": "payment_confirmation"}
    )
    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "SMTP error: 550 mailbox unavailable"
    assert body["log"]["status"] == "failed"

    logs = client.get("/api/emails/logs", params={"order_id": order["id"]}).json()["logs"]
    assert [(log["email_type"], log["status"]) for log in logs] == [("payment_confirmation", "failed")]
    assert client.get(f"/api/orders/{order['id']}").json()["payment_confirmation_sent"] is None


def test_custom_email_substitutes_tokens(client, create_order, fake_mailer):
    order = create_order(email="buyer@harbor.example")

    response = client.post(
        "/api/emails/send",
        json={
            "order_id": order["id"],
            "subject": "Update on {{order_ref}}",
            "content": "<p>Hello {{buyer_name}}</p>",
            "recipient": "other@harbor.example",
        },
    )
    assert response.json()["log"]["email_type"] == "custom"
    assert fake_mailer.sent[0] == {
        "to": "other@harbor.example",
        "subject": f"Update on {order['order_ref']}",
        "html": "<p>Hello Harbor Goods</p>",
    }


def test_send_rejects_bad_requests(client, create_order):
    no_email = create_order()

    missing_recipient = client.post(
        "/api/emails/send", json={"order_id": no_email["id"], "template_type": "deposit_reminder"}
    )
    assert missing_recipient.status_code == status.HTTP_400_BAD_REQUEST
    assert missing_recipient.json()["error"].startswith("No recipient email address")

    no_content = client.post("/api/emails/send", json={"order_id": no_email["id"]})
    assert no_content.status_code == status.HTTP_400_BAD_REQUEST

    unknown_type = client.post(
        "/api/emails/send", json={"order_id": no_email["id"], "template_type": "newsletter"}
    )
    assert unknown_type.status_code == status.HTTP_400_BAD_REQUEST

    unknown_order = client.post("/api/emails/send", json={"order_id": 999, "template_type": "deposit_reminder"})
    assert unknown_order.status_code == status.HTTP_404_NOT_FOUND


def test_batch_reminders(client, create_order, fake_mailer):
    unpaid = create_order(order_ref="U-1", email="unpaid@example.com")
    create_order(order_ref="U-2")
    create_order(order_ref="D-1", email="deposit@example.com", payment_1=250.0)
    create_order(order_ref="P-1", email="paid@example.com", payment_1=1000.0)

    deposit = client.post("/api/emails/reminders", json={"reminder_type": "deposit"}).json()
    assert deposit == {"success": 1, "failed": 1, "total": 2}
    assert [m["to"] for m in fake_mailer.sent] == ["unpaid@example.com"]

    final = client.post("/api/emails/reminders", json={"reminder_type": "final"}).json()
    assert final == {"success": 1, "failed": 0, "total": 1}
    assert fake_mailer.sent[-1]["subject"] == "Final Payment Required: D-1"

    selected = client.post(
        "/api/emails/reminders",
        json={"reminder_type": "deposit", "order_ids": [unpaid["id"], 999]},
    ).json()
    assert selected == {"success": 1, "failed": 1, "total": 2}

    invalid = client.post("/api/emails/reminders", json={"reminder_type": "overdue"})
    assert invalid.status_code == status.HTTP_400_BAD_REQUEST
    assert invalid.json() == {"error": "Reminder type must be 'deposit' or 'final'"}
