from django.db import models


class Notification(models.Model):
	CATEGORY_INFO    = "info"
	CATEGORY_SUCCESS = "success"
	CATEGORY_WARNING = "warning"
	CATEGORY_ERROR   = "error"

	CATEGORY_CHOICES = [
		(CATEGORY_INFO, "Info"),
		(CATEGORY_SUCCESS, "Success"),
		(CATEGORY_WARNING, "Warning"),
		(CATEGORY_ERROR, "Error"),
	]

	recipient_email = models.EmailField(blank=True)
	recipient_phone = models.CharField(max_length=40, blank=True)
	appointment_id = models.BigIntegerField(null=True, blank=True)
	title = models.CharField(max_length=200)
	message = models.TextField()
	category = models.CharField(max_length=10, choices=CATEGORY_CHOICES, default=CATEGORY_INFO)
	is_read = models.BooleanField(default=False)
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		indexes = [
			models.Index(fields=["recipient_email", "is_read"], name="notif_recipient_idx"),
		]
		ordering = ["-created_at"]

	def __str__(self):
		return f"{self.title} -> {self.recipient_email or self.recipient_phone}"

	def as_dict(self):
		return {
			"id": self.id,
			"recipient_email": self.recipient_email,
			"recipient_phone": self.recipient_phone,
			"appointment_id": self.appointment_id,
			"title": self.title,
			"message": self.message,
			"category": self.category,
			"is_read": self.is_read,
			"created_at": self.created_at.isoformat() if self.created_at else None,
		}
