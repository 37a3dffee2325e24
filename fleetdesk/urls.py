from django.urls import include, path
from django.views.generic import RedirectView

urlpatterns = [
    path("", RedirectView.as_view(pattern_name="driver_report", permanent=False), name="index"),
    path("reports/", include("tripreports.urls")),
]
