from django import forms
from django.conf import settings

from .exceptions import ValidationError
from .models import Appointment
from .utils.time_utils import is_on_slot_grid

TIME_INPUT_FORMATS = ["%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M%p"]

# camelCase keys sent by the booking portal
FIELD_ALIASES = {
    "providerName": "provider_name",
    "doctorName": "provider_name",
    "appointmentDate": "date",
    "appointmentTime": "time",
    "patientName": "full_name",
    "fullName": "full_name",
    "contactNumber": "phone",
    "dateOfBirth": "date_of_birth",
    "bloodType": "blood_type",
    "emergencyContactName": "emergency_contact_name",
    "emergencyContactNumber": "emergency_contact_number",
    "newDate": "new_date",
    "newTime": "new_time",
    "newProviderName": "new_provider_name",
    "newStatus": "status",
    "doctorId": "provider_id",
    "providerId": "provider_id",
    "dayOfWeek": "day_of_week",
    "startTime": "start_time",
    "endTime": "end_time",
    "maxAppointmentsPerSlot": "max_appointments_per_slot",
}


def normalize_keys(data):
    if data is None:
        return {}
    return {FIELD_ALIASES.get(k, k): v for k, v in dict(data).items()}


def validate(form_class, data):
    """
    Run a form over request data and return cleaned_data.
    Raises scheduling ValidationError carrying the field errors.
    """
    form = form_class(data=normalize_keys(data))
    if not form.is_valid():
        errors = {field: [str(e) for e in errs] for field, errs in form.errors.items()}
        raise ValidationError("Please correct the errors below.", errors)
    return form.cleaned_data


class SlotTimeField(forms.TimeField):
    """TimeField that only accepts times on the booking grid."""

    def __init__(self, **kwargs):
        kwargs.setdefault("input_formats", TIME_INPUT_FORMATS)
        super().__init__(**kwargs)

    def validate(self, value):
        super().validate(value)
        step = settings.SCHEDULING_SLOT_MINUTES
        if value is not None and not is_on_slot_grid(value, step):
            raise forms.ValidationError(
                f"Appointments start on {step}-minute boundaries.",
                code="off_grid",
            )


class AvailabilityQueryForm(forms.Form):
    provider_name = forms.CharField(max_length=120)
    date = forms.DateField()
    time = forms.TimeField(input_formats=TIME_INPUT_FORMATS)

    def clean_provider_name(self):
        return self.cleaned_data["provider_name"].strip()


class BookingForm(forms.Form):
    """
    Booking request from the portal or the front desk.
    Personal details are a snapshot; the Patient record is made on approval.
    """

    provider_name = forms.CharField(max_length=120)
    date = forms.DateField()
    time = SlotTimeField()

    full_name = forms.CharField(max_length=120)
    email = forms.EmailField()
    phone = forms.CharField(max_length=40)

    address = forms.CharField(max_length=255, required=False)
    date_of_birth = forms.DateField(required=False)
    blood_type = forms.CharField(max_length=5, required=False)
    gender = forms.CharField(max_length=10, required=False)
    emergency_contact_name = forms.CharField(max_length=120, required=False)
    emergency_contact_number = forms.CharField(max_length=40, required=False)
    reason = forms.CharField(max_length=255, required=False)
    notes = forms.CharField(required=False)

    def clean(self):
        cleaned = super().clean()
        for key in ("provider_name", "full_name", "phone", "address", "gender"):
            if isinstance(cleaned.get(key), str):
                cleaned[key] = cleaned[key].strip()
        if cleaned.get("email"):
            cleaned["email"] = cleaned["email"].strip()
        if cleaned.get("gender"):
            cleaned["gender"] = cleaned["gender"].upper()
        return cleaned


class RescheduleForm(forms.Form):
    new_date = forms.DateField()
    new_time = SlotTimeField()
    new_provider_name = forms.CharField(max_length=120, required=False)

    def clean_new_provider_name(self):
        return (self.cleaned_data.get("new_provider_name") or "").strip() or None


class StatusChangeForm(forms.Form):
    status = forms.ChoiceField(choices=Appointment.Status.choices)
