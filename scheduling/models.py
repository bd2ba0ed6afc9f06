from django.db import models
from django.db.models import F, Q


class Provider(models.Model):
	"""A bookable clinician. Appointments reference providers by name."""

	name = models.CharField(max_length=120, unique=True)
	email = models.EmailField(blank=True)
	is_active = models.BooleanField(default=True)
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		ordering = ["name"]

	def __str__(self):
		return self.name


class AvailabilityWindow(models.Model):
	"""
	Recurring weekly bookable window for a provider.
	Interval is half-open: start_time <= t < end_time.
	"""

	# 0=Mon ... 6=Sun (matches date.weekday())
	class DayOfWeek(models.IntegerChoices):
		MONDAY    = 0, "Monday"
		TUESDAY   = 1, "Tuesday"
		WEDNESDAY = 2, "Wednesday"
		THURSDAY  = 3, "Thursday"
		FRIDAY    = 4, "Friday"
		SATURDAY  = 5, "Saturday"
		SUNDAY    = 6, "Sunday"

	provider = models.ForeignKey(
		Provider,
		on_delete=models.CASCADE,
		related_name="availability_windows",
	)
	day_of_week = models.IntegerField(choices=DayOfWeek.choices)
	start_time = models.TimeField()
	end_time = models.TimeField()
	max_appointments_per_slot = models.PositiveIntegerField(default=3)
	is_available = models.BooleanField(default=True)
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		indexes = [
			models.Index(fields=["provider", "day_of_week"], name="window_provider_day_idx"),
		]
		constraints = [
			models.CheckConstraint(
				name="window_end_after_start",
				condition=Q(end_time__gt=F("start_time")),
			),
			models.CheckConstraint(
				name="window_max_per_slot_positive",
				condition=Q(max_appointments_per_slot__gt=0),
			),
		]
		ordering = ["provider", "day_of_week", "start_time"]

	def __str__(self):
		return (
			f"{self.provider} {self.get_day_of_week_display()} "
			f"{self.start_time:%H:%M}-{self.end_time:%H:%M} (max {self.max_appointments_per_slot})"
		)

	def contains(self, t):
		return self.start_time <= t < self.end_time


class Appointment(models.Model):
	class Status(models.TextChoices):
		PENDING   = "pending", "Pending"
		APPROVED  = "approved", "Approved"
		REJECTED  = "rejected", "Rejected"
		CANCELLED = "cancelled", "Cancelled"
		COMPLETED = "completed", "Completed"

	# statuses that hold a seat in their (provider, date, time) slot
	OCCUPYING_STATUSES = (Status.PENDING, Status.APPROVED, Status.COMPLETED)
	RESCHEDULABLE_STATUSES = (Status.PENDING, Status.APPROVED)

	TRANSITIONS = {
		Status.PENDING: {Status.APPROVED, Status.REJECTED, Status.CANCELLED},
		Status.APPROVED: {Status.COMPLETED, Status.CANCELLED},
		Status.REJECTED: set(),
		Status.CANCELLED: set(),
		Status.COMPLETED: set(),
	}

	# personal-detail snapshot, promoted to a Patient on approval
	full_name = models.CharField(max_length=120)
	email = models.EmailField()
	phone = models.CharField(max_length=40)
	address = models.CharField(max_length=255, blank=True)
	date_of_birth = models.DateField(null=True, blank=True)
	blood_type = models.CharField(max_length=5, blank=True)
	gender = models.CharField(max_length=10, blank=True)
	emergency_contact_name = models.CharField(max_length=120, blank=True)
	emergency_contact_number = models.CharField(max_length=40, blank=True)

	reason = models.CharField(max_length=255, blank=True, default="General Consultation")
	notes = models.TextField(blank=True)

	provider_name = models.CharField(max_length=120)
	date = models.DateField()
	time = models.TimeField()

	status = models.CharField(
		max_length=10,
		choices=Status.choices,
		default=Status.PENDING,
	)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		indexes = [
			models.Index(fields=["provider_name", "date", "time"], name="appt_slot_idx"),
			models.Index(fields=["email"], name="appt_email_idx"),
		]
		ordering = ["-date", "time", "full_name"]

	def __str__(self):
		return f"{self.full_name} - {self.provider_name} {self.date} {self.time:%H:%M} ({self.status})"

	@property
	def occupies_slot(self):
		return self.status in self.OCCUPYING_STATUSES

	@property
	def slot_key(self):
		return (self.provider_name, self.date, self.time)

	def can_transition(self, new_status):
		return new_status in self.TRANSITIONS.get(self.status, set())

	def as_dict(self):
		return {
			"id": self.id,
			"full_name": self.full_name,
			"email": self.email,
			"phone": self.phone,
			"address": self.address,
			"date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
			"blood_type": self.blood_type,
			"gender": self.gender,
			"emergency_contact_name": self.emergency_contact_name,
			"emergency_contact_number": self.emergency_contact_number,
			"reason": self.reason,
			"notes": self.notes,
			"provider_name": self.provider_name,
			"date": self.date.isoformat(),
			"time": self.time.strftime("%H:%M"),
			"status": self.status,
			"created_at": self.created_at.isoformat() if self.created_at else None,
			"updated_at": self.updated_at.isoformat() if self.updated_at else None,
		}


class SlotLock(models.Model):
	"""Row locked FOR UPDATE while a booking for its slot is decided."""

	provider_name = models.CharField(max_length=120)
	date = models.DateField()
	time = models.TimeField()

	class Meta:
		constraints = [
			models.UniqueConstraint(
				fields=["provider_name", "date", "time"],
				name="uniq_slot_lock",
			),
		]

	def __str__(self):
		return f"{self.provider_name} {self.date} {self.time:%H:%M}"


class FailedSideEffect(models.Model):
	"""Downstream effect that failed after its status transition committed."""

	TARGET_PATIENT      = "patient"
	TARGET_HISTORY      = "history"
	TARGET_NOTIFICATION = "notification"
	TARGET_EMAIL        = "email"

	TARGET_CHOICES = [
		(TARGET_PATIENT, "Patient record"),
		(TARGET_HISTORY, "Appointment history"),
		(TARGET_NOTIFICATION, "In-app notification"),
		(TARGET_EMAIL, "Notification email"),
	]

	appointment = models.ForeignKey(
		Appointment,
		on_delete=models.CASCADE,
		related_name="failed_side_effects",
	)
	status = models.CharField(max_length=10, choices=Appointment.Status.choices)
	target = models.CharField(max_length=20, choices=TARGET_CHOICES)
	error = models.TextField()
	created_at = models.DateTimeField(auto_now_add=True)
	resolved_at = models.DateTimeField(null=True, blank=True)

	class Meta:
		ordering = ["-created_at"]

	def __str__(self):
		return f"#{self.appointment_id} {self.target} on {self.status}: {self.error[:60]}"
