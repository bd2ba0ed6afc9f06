from django.db import models


class Patient(models.Model):
	# identity key; stored lower-cased so the unique index is case-insensitive
	email = models.EmailField(unique=True)
	full_name = models.CharField(max_length=120)
	address = models.CharField(max_length=255, blank=True)
	date_of_birth = models.DateField(null=True, blank=True)
	blood_type = models.CharField(max_length=5, blank=True)
	contact_number = models.CharField(max_length=40, blank=True)
	gender = models.CharField(max_length=10, blank=True)
	emergency_contact_name = models.CharField(max_length=120, blank=True)
	emergency_contact_number = models.CharField(max_length=40, blank=True)
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		indexes = [
			models.Index(fields=["full_name"], name="patient_name_idx"),
		]
		ordering = ["full_name"]

	def __str__(self):
		return f"{self.full_name} <{self.email}>"


class AppointmentHistory(models.Model):
	patient = models.ForeignKey(
		Patient,
		on_delete=models.CASCADE,
		related_name="history",
	)
	# id of the scheduling appointment this row was derived from
	source_appointment_id = models.BigIntegerField(null=True, blank=True)
	appointment_date = models.DateField()
	appointment_time = models.TimeField()
	consultation_type = models.CharField(max_length=255, default="General Consultation")
	provider_name = models.CharField(max_length=120)
	notes = models.TextField(blank=True)
	status = models.CharField(max_length=10)
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		verbose_name_plural = "appointment history"
		ordering = ["-appointment_date", "-appointment_time"]

	def __str__(self):
		return f"{self.patient.full_name} {self.appointment_date} {self.appointment_time:%H:%M} ({self.status})"
