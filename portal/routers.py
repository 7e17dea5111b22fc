"""
URL mappings for the dashboard gateway.

Path prefixes follow the role of the dashboard that calls them:
``api/admin`` platform admin, ``api/clinic`` clinic manager (front-desk
endpoints also admit secretaries), ``api/doctor``, ``api/secretary`` and
``api/patient``. Trailing slashes are omitted.
"""
from django.urls import path, include

from .auth_views import login_view, logout_view, me_view, register_clinic_view
from .views import clinic
from .views import doctor
from .views import health
from .views import notifications
from .views import patient_portal
from .views import patients
from .views import payments
from .views import platform
from .views import reports
from .views import secretary
from .views import staff


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/login', login_view),
    path('api/auth/logout', logout_view),
    path('api/auth/me', me_view),
    path('api/register/clinic', register_clinic_view),
    # Platform admin
    path('api/admin/dashboard/stats', platform.dashboard_stats),
    path('api/admin/clinics', platform.clinics),
    path('api/admin/clinics/<int:clinic_id>', platform.clinic_detail),
    path('api/admin/clinics/<int:clinic_id>/toggle-status', platform.toggle_status),
    # Clinic (manager)
    path('api/clinic/settings', clinic.settings_view),
    path('api/clinic/logo', clinic.logo),
    path('api/clinic/dashboard/stats', clinic.dashboard_stats),
    path('api/clinic/staff', staff.staff),
    path('api/clinic/staff/<int:user_id>', staff.staff_member),
    path('api/clinic/schedule', staff.schedules),
    path('api/clinic/schedule/<int:user_id>', staff.schedule_detail),
    path('api/clinic/reports', reports.clinic_reports),
    path('api/clinic/reports/revenue-analytics', reports.revenue_analytics),
    path('api/clinic/payments/daily-report', reports.clinic_daily_report),
    # Front desk (manager or secretary)
    path('api/clinic/doctors', staff.doctors),
    path('api/clinic/doctors/<int:doctor_id>/time-slots', staff.time_slots),
    path('api/clinic/appointments', clinic.create_appointment),
    path('api/clinic/patients', patients.patients),
    path('api/clinic/patients/lookup', patients.lookup),
    path('api/clinic/patients/<int:patient_id>', patients.patient_detail),
    path('api/clinic/patients/<int:patient_id>/history', patients.history),
    path('api/clinic/patients/<int:patient_id>/payments', payments.patient_payments),
    path('api/clinic/payments', payments.payments),
    path('api/clinic/payments/pending', payments.pending),
    path('api/clinic/payments/<int:payment_id>', payments.payment_detail),
    # Secretary
    path('api/secretary/dashboard', secretary.dashboard),
    path('api/secretary/appointments/requests', secretary.appointment_requests),
    path('api/secretary/appointments/<int:appointment_id>/approve', secretary.approve_request),
    path('api/secretary/appointments/<int:appointment_id>/reject', secretary.reject_request),
    path('api/secretary/appointments/<int:appointment_id>/reschedule', secretary.reschedule_request),
    path('api/secretary/reports/daily', reports.secretary_daily_report),
    # Doctor
    path('api/doctor/dashboard', doctor.dashboard),
    path('api/doctor/appointments', doctor.appointments),
    path('api/doctor/appointments/today', doctor.appointments_today),
    path('api/doctor/appointments/upcoming', doctor.appointments_upcoming),
    path('api/doctor/appointments/requests', doctor.appointment_requests),
    path('api/doctor/appointments/<int:appointment_id>/approve', doctor.approve),
    path('api/doctor/appointments/<int:appointment_id>/reschedule', doctor.reschedule),
    path('api/doctor/appointments/<int:appointment_id>/complete', doctor.complete),
    path('api/doctor/medical-records', doctor.medical_record),
    # Patient portal
    path('api/patient/dashboard', patient_portal.dashboard),
    path('api/patient/appointments', patient_portal.appointments),
    path('api/patient/doctors', patient_portal.doctors),
    path('api/patient/medical-history', patient_portal.medical_history),
    # Notifications (any signed-in role)
    path('api/notifications', notifications.notifications),
    path('api/notifications/read-all', notifications.mark_all_read),
    path('api/notifications/<str:notification_id>/read', notifications.mark_read),
]
