# apps/bookingapp/urls.py
from django.urls import path

from apps.bookingapp.views import (
    AlternativesView,
    AppointmentCancelView,
    AppointmentConflictsView,
    AppointmentCreateView,
    AppointmentRescheduleView,
    AvailabilityView,
    ConflictCheckView,
    ConflictResolveView,
    LoadBalanceView,
)

urlpatterns = [
    path("availability/", AvailabilityView.as_view(), name="booking-availability"),
    path("conflicts/", ConflictCheckView.as_view(), name="booking-conflicts"),
    path("alternatives/", AlternativesView.as_view(), name="booking-alternatives"),
    path("load-balance/", LoadBalanceView.as_view(), name="booking-load-balance"),
    path("appointments/", AppointmentCreateView.as_view(), name="appointment-create"),
    path(
        "appointments/<uuid:appointment_id>/reschedule/",
        AppointmentRescheduleView.as_view(),
        name="appointment-reschedule",
    ),
    path(
        "appointments/<uuid:appointment_id>/cancel/",
        AppointmentCancelView.as_view(),
        name="appointment-cancel",
    ),
    path(
        "appointments/<uuid:appointment_id>/conflicts/",
        AppointmentConflictsView.as_view(),
        name="appointment-conflicts",
    ),
    path(
        "conflicts/<uuid:conflict_id>/resolve/",
        ConflictResolveView.as_view(),
        name="conflict-resolve",
    ),
]
