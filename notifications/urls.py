from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    path('', views.notifications, name='notifications'),
    path('<int:pk>/', views.notification_detail, name='notification_detail'),
]
