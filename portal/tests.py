from __future__ import annotations
import json
from datetime import date
from unittest.mock import MagicMock, patch
import requests
from django.test import SimpleTestCase, TestCase, Client
from django.urls import reverse
from . import choices
from .api import BackendClient, BackendError
from .forms import AppointmentEditForm, AppointmentStatusForm
from .models import Appointment, DiagnosticCenter, OperatingHours, SessionUser
from .session import SessionContext

HOURS_9_TO_5 = {"open": "09:00", "close": "17:00"}


def center_json(**overrides):
    data = {
        "_id": "c1",
        "name": "City Diagnostics",
        "description": "Full-service lab",
        "address": {
            "street": "12 MG Road",
            "city": "Bengaluru",
            "state": "KA",
            "zipCode": "560001",
            "country": "India",
        },
        "phone": "080-5550100",
        "email": "desk@citydiag.example",
        "operatingHours": {
            "monday": HOURS_9_TO_5,
            "tuesday": HOURS_9_TO_5,
            "wednesday": HOURS_9_TO_5,
            "thursday": HOURS_9_TO_5,
            "friday": HOURS_9_TO_5,
            "saturday": {"open": "10:00", "close": "14:00"},
            "sunday": {"open": "", "close": ""},
        },
        "services": ["Blood Tests", "X-Ray"],
        "isActive": True,
        "rating": 4.5,
        "totalReviews": 18,
        "adminId": {"name": "Meera Rao", "email": "meera@citydiag.example", "phone": "080-5550101"},
    }
    data.update(overrides)
    return data


def appointment_json(idx=1, status="pending", notes="Fasting required", **overrides):
    data = {
        "_id": f"a{idx}",
        "patientId": {"_id": f"p{idx}", "name": f"Patient {idx}", "email": f"p{idx}@example.com", "phone": "555"},
        "testId": {"_id": "t1", "name": "Lipid Profile", "category": "Blood", "price": 800, "duration": 30},
        "diagnosticCenterId": {"name": "City Diagnostics", "address": {"street": "12 MG Road", "city": "Bengaluru"}},
        "appointmentDate": "2025-03-10T00:00:00.000Z",
        "appointmentTime": "10:30",
        "status": status,
        "totalAmount": 800,
        "notes": notes,
    }
    data.update(overrides)
    return data


def fake_response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.content = b"{}" if payload is not None else b""
    resp.json.return_value = payload
    return resp


class ModelParsingTests(SimpleTestCase):
    def test_operating_hours_display(self):
        self.assertEqual(OperatingHours.from_json({"open": "", "close": ""}).display(), "Closed")
        self.assertEqual(OperatingHours.from_json({"open": "09:00", "close": ""}).display(), "Closed")
        self.assertEqual(OperatingHours.from_json(None).display(), "Closed")
        self.assertEqual(OperatingHours.from_json(HOURS_9_TO_5).display(), "09:00 - 17:00")

    def test_weekly_hours_always_seven_days(self):
        center = DiagnosticCenter.from_json(center_json(operatingHours={"monday": HOURS_9_TO_5}))
        rows = center.weekly_hours
        self.assertEqual([label for label, _ in rows][0], "Monday")
        self.assertEqual(len(rows), 7)
        self.assertEqual(rows[0][1], "09:00 - 17:00")
        self.assertTrue(all(text == "Closed" for _, text in rows[1:]))

    def test_center_optional_blocks(self):
        center = DiagnosticCenter.from_json(center_json(services=None, adminId=None, rating=None))
        self.assertEqual(center.services, [])
        self.assertIsNone(center.admin)
        self.assertIsNone(center.rating)

        full = DiagnosticCenter.from_json(center_json())
        self.assertEqual(full.admin.name, "Meera Rao")
        self.assertEqual(full.address.zip_code, "560001")

    def test_appointment_parsing(self):
        appt = Appointment.from_json(appointment_json())
        self.assertEqual(appt.appointment_date, date(2025, 3, 10))
        self.assertEqual(appt.patient.name, "Patient 1")
        self.assertEqual(appt.test_name, "Lipid Profile")
        self.assertEqual(appt.center_name, "City Diagnostics")

        bare = Appointment.from_json({"_id": "x", "testId": "t9", "status": "pending"})
        self.assertEqual(bare.test_name, "")
        self.assertIsNone(bare.appointment_date)

    def test_out_of_range_date_is_ignored(self):
        appt = Appointment.from_json(appointment_json(appointmentDate="2025-02-30T00:00:00.000Z"))
        self.assertIsNone(appt.appointment_date)
        self.assertEqual(appt.appointment_date_raw, "2025-02-30T00:00:00.000Z")
        self.assertIsNone(Appointment.from_json(appointment_json(appointmentDate="2025-13-01")).appointment_date)

    def test_status_mapping_is_total(self):
        for status in choices.AppointmentStatus:
            self.assertIn(status, choices.STATUS_DISPLAY)

    def test_status_permissions(self):
        self.assertFalse(choices.can_edit("completed"))
        self.assertFalse(choices.can_edit("cancelled"))
        self.assertFalse(choices.can_delete("completed"))
        self.assertTrue(choices.can_delete("cancelled"))
        for status in ("pending", "scheduled", "confirmed", "something-new"):
            self.assertTrue(choices.can_edit(status))
            self.assertTrue(choices.can_delete(status))

    def test_badges(self):
        self.assertEqual(choices.badge_variant("confirmed"), "default")
        self.assertEqual(choices.badge_variant("completed"), "secondary")
        self.assertEqual(choices.badge_variant("cancelled"), "destructive")
        self.assertEqual(choices.badge_variant("pending"), "outline")
        self.assertEqual(choices.badge_color("confirmed"), "bg-green-500")
        self.assertEqual(choices.badge_color("pending"), "bg-yellow-500")
        self.assertEqual(choices.badge_color("cancelled"), "bg-red-500")
        self.assertEqual(choices.badge_color("completed"), "bg-blue-500")
        self.assertEqual(choices.badge_color("weird"), "bg-gray-500")


class FormTests(SimpleTestCase):
    def test_status_payload_without_cancellation(self):
        form = AppointmentStatusForm({"status": "confirmed", "notes": "Bring ID", "cancellation_reason": "ignored"})
        self.assertTrue(form.is_valid())
        self.assertEqual(form.to_payload(), {"status": "confirmed", "notes": "Bring ID"})

    def test_status_payload_with_cancellation(self):
        form = AppointmentStatusForm({"status": "cancelled", "notes": "", "cancellation_reason": "Patient request"})
        self.assertTrue(form.is_valid())
        self.assertEqual(
            form.to_payload(),
            {"status": "cancelled", "notes": "", "cancellationReason": "Patient request"},
        )

    def test_cancellation_requires_reason(self):
        form = AppointmentStatusForm({"status": "cancelled", "notes": "x", "cancellation_reason": "  "})
        self.assertFalse(form.is_valid())
        self.assertIn("cancellation_reason", form.errors)

    def test_status_form_rejects_dashboard_only_status(self):
        form = AppointmentStatusForm({"status": "scheduled"})
        self.assertFalse(form.is_valid())

    def test_edit_form_payload_and_initial(self):
        appt = Appointment.from_json(appointment_json(status="scheduled"))
        self.assertEqual(
            AppointmentEditForm.initial_for(appt),
            {"appointment_date": "2025-03-10", "status": "scheduled"},
        )
        form = AppointmentEditForm({"appointment_date": "2025-04-01", "status": "confirmed"})
        self.assertTrue(form.is_valid())
        self.assertEqual(form.to_payload(), {"status": "confirmed", "appointmentDate": "2025-04-01"})

    def test_current_status_stays_selectable(self):
        form = AppointmentEditForm({"appointment_date": "2025-04-01", "status": "pending"}, current_status="pending")
        self.assertTrue(form.is_valid())
        self.assertEqual(form.to_payload()["status"], "pending")
        self.assertFalse(AppointmentEditForm({"appointment_date": "2025-04-01", "status": "pending"}).is_valid())


class BackendClientTests(SimpleTestCase):
    def setUp(self):
        self.session = MagicMock(spec=requests.Session)
        self.client_api = BackendClient("http://backend.test/", timeout=5, session=self.session)

    def test_get_center_unauthenticated(self):
        self.session.request.return_value = fake_response(payload={"center": center_json()})
        center = self.client_api.get_center("c1")
        self.assertEqual(center["name"], "City Diagnostics")
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("GET", "http://backend.test/api/diagnostic-centers/c1"))
        self.assertNotIn("Authorization", kwargs["headers"])
        self.assertEqual(kwargs["timeout"], 5)

    def test_status_update_sends_bearer_and_body(self):
        self.session.request.return_value = fake_response(payload={"appointment": {}})
        payload = {"status": "cancelled", "notes": "Fasting required", "cancellationReason": "Patient request"}
        self.client_api.update_appointment_status("a1", payload, "tok-1")
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("PUT", "http://backend.test/api/appointments/a1/status"))
        self.assertEqual(kwargs["json"], payload)
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer tok-1")
        self.assertEqual(kwargs["headers"]["Content-Type"], "application/json")

    def test_dashboard_endpoints(self):
        self.session.request.return_value = fake_response(payload={"appointments": "not-a-list"})
        self.assertEqual(self.client_api.get_my_appointments("tok"), [])
        self.assertEqual(self.session.request.call_args[0], ("GET", "http://backend.test/api/appointments/my-appointments"))

        self.session.request.return_value = fake_response(payload={})
        self.client_api.update_appointment("a2", {"status": "confirmed", "appointmentDate": "2025-04-01"}, "tok")
        self.assertEqual(self.session.request.call_args[0], ("PUT", "http://backend.test/api/appointments/a2"))

        self.session.request.return_value = fake_response(status_code=204)
        self.assertEqual(self.client_api.delete_appointment("a2", "tok"), {})
        self.assertEqual(self.session.request.call_args[0], ("DELETE", "http://backend.test/api/appointments/a2"))

    def test_center_appointments_default_empty(self):
        self.session.request.return_value = fake_response(payload={})
        self.assertEqual(self.client_api.get_center_appointments("c1", "tok"), [])

    def test_center_appointments_non_list_ignored(self):
        self.session.request.return_value = fake_response(payload={"appointments": {"a1": {}}})
        self.assertEqual(self.client_api.get_center_appointments("c1", "tok"), [])

    def test_non_success_status_raises(self):
        self.session.request.return_value = fake_response(status_code=404, payload={"message": "nope"})
        with self.assertRaises(BackendError) as ctx:
            self.client_api.get_center("missing")
        self.assertEqual(ctx.exception.status_code, 404)

    def test_transport_error_raises(self):
        self.session.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(BackendError) as ctx:
            self.client_api.get_my_appointments("tok")
        self.assertIsNone(ctx.exception.status_code)


class PortalViewTestBase(TestCase):
    def setUp(self):
        self.client = Client()
        patcher = patch("portal.views.get_backend_client")
        self.get_client = patcher.start()
        self.addCleanup(patcher.stop)
        self.api = self.get_client.return_value

    def _sign_in(self, token="tok-123", user=True):
        session = self.client.session
        if token:
            session["token"] = token
        if user:
            session["user"] = json.dumps({"id": "u1", "name": "Priya", "email": "priya@example.com", "role": "patient"})
        session.save()


class CenterDetailViewTests(PortalViewTestBase):
    def test_renders_at_most_five_appointments(self):
        self._sign_in()
        self.api.get_center.return_value = center_json()
        self.api.get_center_appointments.return_value = [appointment_json(i) for i in range(1, 8)]

        resp = self.client.get(reverse("center_detail", kwargs={"center_id": "c1"}))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.context["appointments"]), 5)
        self.assertEqual(resp.content.decode().count('class="appointment '), 5)
        self.api.get_center_appointments.assert_called_once_with("c1", "tok-123")

    def test_fewer_than_five_rendered_in_full(self):
        self._sign_in()
        self.api.get_center.return_value = center_json()
        self.api.get_center_appointments.return_value = [appointment_json(1), appointment_json(2)]
        resp = self.client.get(reverse("center_detail", kwargs={"center_id": "c1"}))
        self.assertEqual(len(resp.context["appointments"]), 2)

    def test_profile_sections(self):
        self.api.get_center.return_value = center_json()
        resp = self.client.get(reverse("center_detail", kwargs={"center_id": "c1"}))
        content = resp.content.decode()
        self.assertIn("City Diagnostics", content)
        self.assertIn("09:00 - 17:00", content)
        self.assertIn("Closed", content)
        self.assertIn("Services Offered", content)
        self.assertIn("Center Administrator", content)
        self.assertIn("4.5 / 5", content)
        self.assertIn("No appointments found", content)

    def test_without_token_skips_appointments_fetch(self):
        self.api.get_center.return_value = center_json()
        resp = self.client.get(reverse("center_detail", kwargs={"center_id": "c1"}))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context["appointments"], [])
        self.api.get_center_appointments.assert_not_called()

    def test_profile_failure_shows_error_with_back_link(self):
        self._sign_in()
        self.api.get_center.side_effect = BackendError("boom", status_code=500)
        self.api.get_center_appointments.return_value = []
        resp = self.client.get(reverse("center_detail", kwargs={"center_id": "c1"}))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context["error"], "Failed to fetch center details")
        self.assertIn(reverse("center_list"), resp.content.decode())

    def test_appointments_failure_is_not_fatal(self):
        self._sign_in()
        self.api.get_center.return_value = center_json()
        self.api.get_center_appointments.side_effect = BackendError("down")
        resp = self.client.get(reverse("center_detail", kwargs={"center_id": "c1"}))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context["appointments"], [])

    def test_edit_dialog_seeded_from_appointment(self):
        self._sign_in()
        self.api.get_center.return_value = center_json()
        self.api.get_center_appointments.return_value = [appointment_json(1, status="confirmed", notes="Bring ID")]
        resp = self.client.get(reverse("center_detail", kwargs={"center_id": "c1"}), {"edit": "a1"})
        self.assertEqual(resp.context["editing"].id, "a1")
        self.assertEqual(resp.context["form"].initial["status"], "confirmed")
        self.assertEqual(resp.context["form"].initial["notes"], "Bring ID")

    def test_cancel_with_reason_sends_expected_body(self):
        self._sign_in()
        self.api.get_center.return_value = center_json()
        self.api.get_center_appointments.return_value = [appointment_json(1, status="pending")]

        url = reverse("center_appointment_update", kwargs={"center_id": "c1", "appointment_id": "a1"})
        resp = self.client.post(url, {
            "status": "cancelled",
            "notes": "Fasting required",
            "cancellation_reason": "Patient request",
        }, follow=True)
        self.assertEqual(resp.status_code, 200)
        self.api.update_appointment_status.assert_called_once_with(
            "a1",
            {"status": "cancelled", "notes": "Fasting required", "cancellationReason": "Patient request"},
            "tok-123",
        )
        msgs = list(resp.context["messages"])
        self.assertTrue(any("Appointment updated successfully" in str(m) for m in msgs))

    def test_non_cancel_update_omits_reason(self):
        self._sign_in()
        self.api.get_center.return_value = center_json()
        self.api.get_center_appointments.return_value = []
        url = reverse("center_appointment_update", kwargs={"center_id": "c1", "appointment_id": "a1"})
        self.client.post(url, {"status": "confirmed", "notes": "ok", "cancellation_reason": "stale"})
        payload = self.api.update_appointment_status.call_args[0][1]
        self.assertEqual(payload, {"status": "confirmed", "notes": "ok"})

    def test_invalid_form_rerenders_dialog(self):
        self._sign_in()
        self.api.get_center.return_value = center_json()
        self.api.get_center_appointments.return_value = [appointment_json(1)]
        url = reverse("center_appointment_update", kwargs={"center_id": "c1", "appointment_id": "a1"})
        resp = self.client.post(url, {"status": "cancelled", "notes": "", "cancellation_reason": ""})
        self.assertEqual(resp.status_code, 200)
        self.assertIn("cancellation_reason", resp.context["form"].errors)
        self.api.update_appointment_status.assert_not_called()

    def test_failed_update_keeps_list_and_single_toast(self):
        self._sign_in()
        listing = [appointment_json(1), appointment_json(2, status="confirmed")]
        self.api.get_center.return_value = center_json()
        self.api.get_center_appointments.return_value = listing
        self.api.update_appointment_status.side_effect = BackendError("rejected", status_code=400)

        url = reverse("center_appointment_update", kwargs={"center_id": "c1", "appointment_id": "a1"})
        resp = self.client.post(url, {"status": "confirmed", "notes": ""}, follow=True)
        msgs = list(resp.context["messages"])
        self.assertEqual(len(msgs), 1)
        self.assertEqual(msgs[0].tags, "error")
        self.assertEqual(str(msgs[0]), "Failed to update appointment")
        self.assertEqual([a.status for a in resp.context["appointments"]], ["pending", "confirmed"])

    def test_scheduled_appointment_keeps_status_in_center_dialog(self):
        self._sign_in()
        self.api.get_center.return_value = center_json()
        self.api.get_center_appointments.return_value = [appointment_json(1, status="scheduled", notes="n")]

        resp = self.client.get(reverse("center_detail", kwargs={"center_id": "c1"}), {"edit": "a1"})
        self.assertIn('<option value="scheduled" selected>', resp.content.decode())

        url = reverse("center_appointment_update", kwargs={"center_id": "c1", "appointment_id": "a1"})
        self.client.post(url, {"status": "scheduled", "notes": "n"})
        self.api.update_appointment_status.assert_called_once_with(
            "a1", {"status": "scheduled", "notes": "n"}, "tok-123",
        )

    def test_direct_cancel_uses_fixed_reason(self):
        self._sign_in()
        self.api.get_center.return_value = center_json()
        self.api.get_center_appointments.return_value = []
        url = reverse("center_appointment_cancel", kwargs={"center_id": "c1", "appointment_id": "a3"})
        resp = self.client.post(url, follow=True)
        self.api.update_appointment_status.assert_called_once_with(
            "a3", {"status": "cancelled", "cancellationReason": "Cancelled by admin"}, "tok-123",
        )
        msgs = list(resp.context["messages"])
        self.assertTrue(any("Appointment cancelled successfully" in str(m) for m in msgs))

    def test_mutation_without_token_fails_without_request(self):
        url = reverse("center_appointment_cancel", kwargs={"center_id": "c1", "appointment_id": "a3"})
        resp = self.client.post(url)
        self.assertEqual(resp.status_code, 302)
        self.api.update_appointment_status.assert_not_called()

    def test_cancel_requires_post(self):
        url = reverse("center_appointment_cancel", kwargs={"center_id": "c1", "appointment_id": "a3"})
        self.assertEqual(self.client.get(url).status_code, 405)


class DashboardViewTests(PortalViewTestBase):
    def test_missing_token_redirects_to_login_without_fetch(self):
        self._sign_in(token=None)
        resp = self.client.get(reverse("dashboard"))
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp["Location"], reverse("login"))
        self.api.get_my_appointments.assert_not_called()

    def test_missing_user_redirects_to_login(self):
        self._sign_in(user=False)
        resp = self.client.get(reverse("dashboard"))
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp["Location"], reverse("login"))

    def test_lists_appointments_and_quick_actions(self):
        self._sign_in()
        self.api.get_my_appointments.return_value = [
            appointment_json(1, status="scheduled"),
            appointment_json(2, status="completed", testId="t1", diagnosticCenterId="c1"),
        ]
        resp = self.client.get(reverse("dashboard"))
        self.assertEqual(resp.status_code, 200)
        self.api.get_my_appointments.assert_called_once_with("tok-123")
        self.assertEqual(resp.context["user"].name, "Priya")
        self.assertEqual(len(resp.context["appointments"]), 2)

        content = resp.content.decode()
        for name in ("book_appointment", "center_list", "tests"):
            self.assertIn(reverse(name), content)
        self.assertIn("Lipid Profile", content)
        self.assertIn(">Test<", content)
        self.assertIn(">Center<", content)

    def test_controls_disabled_by_status(self):
        self._sign_in()
        self.api.get_my_appointments.return_value = [
            appointment_json(1, status="completed"),
            appointment_json(2, status="cancelled"),
            appointment_json(3, status="confirmed"),
        ]
        resp = self.client.get(reverse("dashboard"))
        flags = [(a.can_edit, a.can_delete) for a in resp.context["appointments"]]
        self.assertEqual(flags, [(False, False), (False, True), (True, True)])
        content = resp.content.decode()
        self.assertNotIn("?edit=a1", content)
        self.assertNotIn("?delete=a1", content)
        self.assertNotIn("?edit=a2", content)
        self.assertIn("?delete=a2", content)
        self.assertIn("?edit=a3", content)

    def test_edit_dialog_only_for_editable(self):
        self._sign_in()
        self.api.get_my_appointments.return_value = [
            appointment_json(1, status="scheduled"),
            appointment_json(2, status="cancelled"),
        ]
        resp = self.client.get(reverse("dashboard"), {"edit": "a1"})
        self.assertEqual(resp.context["editing"].id, "a1")
        self.assertEqual(resp.context["edit_form"].initial["appointment_date"], "2025-03-10")

        resp = self.client.get(reverse("dashboard"), {"edit": "a2"})
        self.assertIsNone(resp.context["editing"])

        resp = self.client.get(reverse("dashboard"), {"delete": "a2"})
        self.assertEqual(resp.context["deleting"].id, "a2")

    def test_update_sends_status_and_date(self):
        self._sign_in()
        self.api.get_my_appointments.return_value = [appointment_json(1, status="scheduled")]
        url = reverse("dashboard_appointment_update", kwargs={"appointment_id": "a1"})
        resp = self.client.post(url, {"appointment_date": "2025-04-01", "status": "confirmed"}, follow=True)
        self.api.update_appointment.assert_called_once_with(
            "a1", {"status": "confirmed", "appointmentDate": "2025-04-01"}, "tok-123",
        )
        msgs = list(resp.context["messages"])
        self.assertTrue(any("Appointment updated successfully" in str(m) for m in msgs))

    def test_failed_update_single_toast_list_unchanged(self):
        self._sign_in()
        self.api.get_my_appointments.return_value = [appointment_json(1, status="scheduled")]
        self.api.update_appointment.side_effect = BackendError("boom", status_code=500)
        url = reverse("dashboard_appointment_update", kwargs={"appointment_id": "a1"})
        resp = self.client.post(url, {"appointment_date": "2025-04-01", "status": "confirmed"}, follow=True)
        msgs = list(resp.context["messages"])
        self.assertEqual([str(m) for m in msgs], ["Failed to update appointment"])
        self.assertEqual([a.status for a in resp.context["appointments"]], ["scheduled"])

    def test_delete(self):
        self._sign_in()
        self.api.get_my_appointments.return_value = [appointment_json(2, status="cancelled")]
        url = reverse("dashboard_appointment_delete", kwargs={"appointment_id": "a2"})
        resp = self.client.post(url, follow=True)
        self.api.delete_appointment.assert_called_once_with("a2", "tok-123")
        msgs = list(resp.context["messages"])
        self.assertTrue(any("Appointment deleted successfully" in str(m) for m in msgs))

    def test_delete_failure_toast(self):
        self._sign_in()
        self.api.get_my_appointments.return_value = [appointment_json(2, status="confirmed")]
        self.api.delete_appointment.side_effect = BackendError("gone", status_code=404)
        url = reverse("dashboard_appointment_delete", kwargs={"appointment_id": "a2"})
        resp = self.client.post(url, follow=True)
        msgs = list(resp.context["messages"])
        self.assertEqual([str(m) for m in msgs], ["Failed to delete appointment"])

    def test_pending_appointment_keeps_status_through_edit(self):
        self._sign_in()
        self.api.get_my_appointments.return_value = [appointment_json(1, status="pending")]

        resp = self.client.get(reverse("dashboard"), {"edit": "a1"})
        self.assertIn('<option value="pending" selected>', resp.content.decode())

        url = reverse("dashboard_appointment_update", kwargs={"appointment_id": "a1"})
        self.client.post(url, {"appointment_date": "2025-04-01", "status": "pending"})
        self.api.update_appointment.assert_called_once_with(
            "a1", {"status": "pending", "appointmentDate": "2025-04-01"}, "tok-123",
        )

    def test_update_refused_for_completed_appointment(self):
        self._sign_in()
        self.api.get_my_appointments.return_value = [appointment_json(1, status="completed")]
        url = reverse("dashboard_appointment_update", kwargs={"appointment_id": "a1"})
        resp = self.client.post(url, {"appointment_date": "2025-04-01", "status": "confirmed"}, follow=True)
        self.api.update_appointment.assert_not_called()
        self.assertEqual([str(m) for m in resp.context["messages"]], ["Failed to update appointment"])

    def test_delete_refused_for_completed_appointment(self):
        self._sign_in()
        self.api.get_my_appointments.return_value = [appointment_json(2, status="completed")]
        url = reverse("dashboard_appointment_delete", kwargs={"appointment_id": "a2"})
        resp = self.client.post(url, follow=True)
        self.api.delete_appointment.assert_not_called()
        self.assertEqual([str(m) for m in resp.context["messages"]], ["Failed to delete appointment"])

    def test_malformed_date_does_not_break_dashboard(self):
        self._sign_in()
        self.api.get_my_appointments.return_value = [
            appointment_json(1, appointmentDate="2025-02-30T00:00:00.000Z"),
        ]
        resp = self.client.get(reverse("dashboard"))
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.context["appointments"][0].appointment_date)

    def test_mutations_require_session(self):
        url = reverse("dashboard_appointment_delete", kwargs={"appointment_id": "a2"})
        resp = self.client.post(url)
        self.assertEqual(resp["Location"], reverse("login"))
        self.api.delete_appointment.assert_not_called()

    def test_logout_clears_session(self):
        self._sign_in()
        resp = self.client.post(reverse("logout"))
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp["Location"], reverse("home"))
        session = self.client.session
        self.assertNotIn("token", session)
        self.assertNotIn("user", session)


class CenterListViewTests(PortalViewTestBase):
    def test_lists_centers(self):
        self.api.list_centers.return_value = [center_json(), center_json(_id="c2", name="Hill Labs", isActive=False)]
        resp = self.client.get(reverse("center_list"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([c.name for c in resp.context["centers"]], ["City Diagnostics", "Hill Labs"])
        self.assertIn(reverse("center_detail", kwargs={"center_id": "c2"}), resp.content.decode())

    def test_failure_shows_error(self):
        self.api.list_centers.side_effect = BackendError("down")
        resp = self.client.get(reverse("center_list"))
        self.assertEqual(resp.context["error"], "Failed to fetch diagnostic centers")

    def test_navigation_targets_resolve(self):
        for name in ("home", "login", "tests", "book_appointment"):
            self.assertEqual(self.client.get(reverse(name)).status_code, 200)


class SessionContextTests(SimpleTestCase):
    def test_store_and_clear(self):
        store = {}
        ctx = SessionContext(store)
        self.assertFalse(ctx.is_authenticated)
        ctx.store("tok", SessionUser(id="u1", name="Priya", email="p@example.com", role="patient"))
        self.assertTrue(ctx.is_authenticated)
        self.assertIsInstance(store["user"], str)
        self.assertEqual(ctx.user.role, "patient")
        ctx.clear()
        self.assertEqual(store, {})

    def test_malformed_user_is_ignored(self):
        ctx = SessionContext({"token": "tok", "user": "{not json"})
        self.assertIsNone(ctx.user)
        self.assertFalse(ctx.is_authenticated)
