from django.urls import path
from django.views.generic import TemplateView
from . import views


def placeholder(title, body):
    return TemplateView.as_view(template_name='portal/placeholder.html', extra_context={'title': title, 'body': body})


urlpatterns = [
    path('', views.home, name='home'),
    path('centers/', views.center_list, name='center_list'),
    path('centers/<str:center_id>/', views.center_detail, name='center_detail'),
    path('centers/<str:center_id>/appointments/<str:appointment_id>/status/', views.center_appointment_update, name='center_appointment_update'),
    path('centers/<str:center_id>/appointments/<str:appointment_id>/cancel/', views.center_appointment_cancel, name='center_appointment_cancel'),
    path('dashboard/', views.dashboard, name='dashboard'),
    path('dashboard/appointments/<str:appointment_id>/update/', views.dashboard_appointment_update, name='dashboard_appointment_update'),
    path('dashboard/appointments/<str:appointment_id>/delete/', views.dashboard_appointment_delete, name='dashboard_appointment_delete'),
    path('logout/', views.logout, name='logout'),
    path('login/', placeholder("Sign in", "Sign in through the booking service to manage your appointments."), name='login'),
    path('tests/', placeholder("Diagnostic Tests", "The test catalogue is served by the booking service."), name='tests'),
    path('appointments/book/', placeholder("Book Appointment", "Appointments are booked through the booking service."), name='book_appointment'),
]
