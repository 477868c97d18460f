import logging
from concurrent.futures import ThreadPoolExecutor

from django.contrib import messages
from django.shortcuts import redirect, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from .api import BackendError, get_backend_client
from .forms import AppointmentEditForm, AppointmentStatusForm
from .models import Appointment, DiagnosticCenter
from .session import with_session_context

logger = logging.getLogger(__name__)

RECENT_APPOINTMENTS_LIMIT = 5
ADMIN_CANCELLATION_REASON = 'Cancelled by admin'
CENTER_ERROR = "Failed to fetch center details"


def _find(appointments, appointment_id):
    if not appointment_id:
        return None
    return next((a for a in appointments if a.id == appointment_id), None)


def home(request):
    return render(request, 'portal/home.html')


def center_list(request):
    centers = []
    error = None
    try:
        centers = [DiagnosticCenter.from_json(c) for c in get_backend_client().list_centers()]
    except BackendError as e:
        logger.error("Error fetching diagnostic centers: %s", e)
        error = "Failed to fetch diagnostic centers"
    return render(request, 'portal/center_list.html', {'centers': centers, 'error': error})


def fetch_center(center_id):
    try:
        return DiagnosticCenter.from_json(get_backend_client().get_center(center_id)), None
    except BackendError as e:
        logger.error("Error fetching center details for %s: %s", center_id, e)
        return None, CENTER_ERROR


def fetch_center_appointments(center_id, token):
    if not token:
        return []
    try:
        raw = get_backend_client().get_center_appointments(center_id, token)
    except BackendError as e:
        logger.error("Error fetching appointments for center %s: %s", center_id, e)
        return []
    return [Appointment.from_json(a) for a in raw]


def _render_center_detail(request, session_ctx, center_id, form=None, editing_id=None):
    with ThreadPoolExecutor(max_workers=2) as pool:
        center_job = pool.submit(fetch_center, center_id)
        appointments_job = pool.submit(fetch_center_appointments, center_id, session_ctx.token)
        center, error = center_job.result()
        appointments = appointments_job.result()

    if center is None:
        return render(request, 'portal/center_detail.html', {'center': None, 'error': error or "Center not found"})

    editing = _find(appointments, editing_id)
    if editing is not None and form is None:
        form = AppointmentStatusForm(initial=AppointmentStatusForm.initial_for(editing), current_status=editing.status)

    return render(request, 'portal/center_detail.html', {
        'center': center,
        'error': None,
        'appointments': appointments[:RECENT_APPOINTMENTS_LIMIT],
        'editing': editing,
        'form': form,
    })


@with_session_context()
def center_detail(request, center_id: str, session_ctx):
    return _render_center_detail(request, session_ctx, center_id, editing_id=request.GET.get('edit'))


@require_POST
@with_session_context()
def center_appointment_update(request, center_id: str, appointment_id: str, session_ctx):
    current = _find(fetch_center_appointments(center_id, session_ctx.token), appointment_id)
    form = AppointmentStatusForm(request.POST, current_status=current.status if current else None)
    if not form.is_valid():
        return _render_center_detail(request, session_ctx, center_id, form=form, editing_id=appointment_id)

    token = session_ctx.token
    try:
        if not token:
            raise BackendError("no session token")
        get_backend_client().update_appointment_status(appointment_id, form.to_payload(), token)
    except BackendError as e:
        logger.error("Failed to update appointment %s: %s", appointment_id, e)
        messages.error(request, "Failed to update appointment")
    else:
        logger.info("Appointment %s set to %s", appointment_id, form.cleaned_data['status'])
        messages.success(request, "Appointment updated successfully")
    return redirect('center_detail', center_id=center_id)


@require_POST
@with_session_context()
def center_appointment_cancel(request, center_id: str, appointment_id: str, session_ctx):
    payload = {'status': 'cancelled', 'cancellationReason': ADMIN_CANCELLATION_REASON}
    token = session_ctx.token
    try:
        if not token:
            raise BackendError("no session token")
        get_backend_client().update_appointment_status(appointment_id, payload, token)
    except BackendError as e:
        logger.error("Failed to cancel appointment %s: %s", appointment_id, e)
        messages.error(request, "Failed to cancel appointment")
    else:
        logger.info("Appointment %s cancelled by admin", appointment_id)
        messages.success(request, "Appointment cancelled successfully")
    return redirect('center_detail', center_id=center_id)


def quick_actions():
    return [
        {
            'title': "Book Appointment",
            'description': "Schedule a new diagnostic appointment",
            'url': reverse('book_appointment'),
            'button': "Book Now",
            'primary': True,
        },
        {
            'title': "Find Centers",
            'description': "Browse diagnostic centers near you",
            'url': reverse('center_list'),
            'button': "Browse",
            'primary': False,
        },
        {
            'title': "View Tests",
            'description': "Explore available diagnostic tests",
            'url': reverse('tests'),
            'button': "View Tests",
            'primary': False,
        },
    ]


def fetch_my_appointments(token):
    try:
        raw = get_backend_client().get_my_appointments(token)
    except BackendError as e:
        logger.error("Error fetching appointments: %s", e)
        return []
    return [Appointment.from_json(a) for a in raw]


def _render_dashboard(request, session_ctx, edit_form=None, editing_id=None, deleting_id=None):
    appointments = fetch_my_appointments(session_ctx.token)

    editing = _find(appointments, editing_id)
    if editing is not None and not editing.can_edit:
        editing = None
    if editing is not None and edit_form is None:
        edit_form = AppointmentEditForm(initial=AppointmentEditForm.initial_for(editing), current_status=editing.status)

    deleting = _find(appointments, deleting_id)
    if deleting is not None and not deleting.can_delete:
        deleting = None

    return render(request, 'portal/dashboard.html', {
        'user': session_ctx.user,
        'appointments': appointments,
        'quick_actions': quick_actions(),
        'editing': editing,
        'edit_form': edit_form if editing is not None else None,
        'deleting': deleting,
    })


@with_session_context(required=True)
def dashboard(request, session_ctx):
    return _render_dashboard(
        request,
        session_ctx,
        editing_id=request.GET.get('edit'),
        deleting_id=request.GET.get('delete'),
    )


@require_POST
@with_session_context(required=True)
def dashboard_appointment_update(request, appointment_id: str, session_ctx):
    current = _find(fetch_my_appointments(session_ctx.token), appointment_id)
    if current is None or not current.can_edit:
        logger.warning("Refusing edit of appointment %s in status %s", appointment_id, current.status if current else None)
        messages.error(request, "Failed to update appointment")
        return redirect('dashboard')

    form = AppointmentEditForm(request.POST, current_status=current.status)
    if not form.is_valid():
        return _render_dashboard(request, session_ctx, edit_form=form, editing_id=appointment_id)

    try:
        get_backend_client().update_appointment(appointment_id, form.to_payload(), session_ctx.token)
    except BackendError as e:
        logger.error("Failed to update appointment %s: %s", appointment_id, e)
        messages.error(request, "Failed to update appointment")
    else:
        logger.info("Appointment %s updated from dashboard", appointment_id)
        messages.success(request, "Appointment updated successfully")
    return redirect('dashboard')


@require_POST
@with_session_context(required=True)
def dashboard_appointment_delete(request, appointment_id: str, session_ctx):
    current = _find(fetch_my_appointments(session_ctx.token), appointment_id)
    if current is None or not current.can_delete:
        logger.warning("Refusing delete of appointment %s in status %s", appointment_id, current.status if current else None)
        messages.error(request, "Failed to delete appointment")
        return redirect('dashboard')

    try:
        get_backend_client().delete_appointment(appointment_id, session_ctx.token)
    except BackendError as e:
        logger.error("Failed to delete appointment %s: %s", appointment_id, e)
        messages.error(request, "Failed to delete appointment")
    else:
        logger.info("Appointment %s deleted", appointment_id)
        messages.success(request, "Appointment deleted successfully")
    return redirect('dashboard')


@require_POST
@with_session_context()
def logout(request, session_ctx):
    session_ctx.clear()
    return redirect('home')
