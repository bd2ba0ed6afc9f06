from django.urls import path
from . import views

app_name = 'scheduling'

urlpatterns = [
    path('appointments/', views.appointments, name='appointments'),
    path('appointments/check-availability/', views.check_availability, name='check_availability'),
    path('appointments/search/', views.search_appointments, name='search_appointments'),
    path('appointments/<int:pk>/', views.appointment_detail, name='appointment_detail'),
    path('appointments/<int:pk>/reschedule/', views.appointment_reschedule, name='appointment_reschedule'),
    path('availability/', views.availability, name='availability'),
    path('availability/slots/', views.availability_slots, name='availability_slots'),
    path('availability/<int:pk>/', views.availability_detail, name='availability_detail'),
    path('providers/', views.providers, name='providers'),
]
