from django import forms

from .choices import AppointmentStatus, CENTER_STATUS_CHOICES, DASHBOARD_STATUS_CHOICES, choices_with_current


class AppointmentStatusForm(forms.Form):
    status = forms.ChoiceField(choices=CENTER_STATUS_CHOICES)
    notes = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={'rows': 3, 'placeholder': 'Add notes...'}),
    )
    cancellation_reason = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={'rows': 2, 'placeholder': 'Reason for cancellation...'}),
    )

    def __init__(self, *args, current_status=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['status'].choices = choices_with_current(CENTER_STATUS_CHOICES, current_status)

    @classmethod
    def initial_for(cls, appointment):
        return {
            'status': appointment.status,
            'notes': appointment.notes,
            'cancellation_reason': appointment.cancellation_reason,
        }

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('status') == AppointmentStatus.CANCELLED and not (cleaned.get('cancellation_reason') or '').strip():
            self.add_error('cancellation_reason', "A cancellation reason is required.")
        return cleaned

    def to_payload(self) -> dict:
        status = self.cleaned_data['status']
        payload = {'status': status, 'notes': self.cleaned_data['notes']}
        if status == AppointmentStatus.CANCELLED:
            payload['cancellationReason'] = self.cleaned_data['cancellation_reason'].strip()
        return payload


class AppointmentEditForm(forms.Form):
    appointment_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    status = forms.ChoiceField(choices=DASHBOARD_STATUS_CHOICES)

    def __init__(self, *args, current_status=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['status'].choices = choices_with_current(DASHBOARD_STATUS_CHOICES, current_status)

    @classmethod
    def initial_for(cls, appointment):
        return {
            'appointment_date': appointment.appointment_date_raw.split('T')[0],
            'status': appointment.status,
        }

    def to_payload(self) -> dict:
        return {
            'status': self.cleaned_data['status'],
            'appointmentDate': self.cleaned_data['appointment_date'].isoformat(),
        }
