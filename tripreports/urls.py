from django.urls import path
from . import views

urlpatterns = [
    path('drivers/', views.driver_report, name='driver_report'),
    path('drivers/detail/<int:trip_id>/', views.trip_detail, name='trip_detail'),
    path('drivers/export/<str:mode>/', views.driver_report_pdf, name='driver_report_pdf'),
    path('drivers/export.csv', views.driver_report_csv, name='driver_report_csv'),
    path('drivers/export.xlsx', views.driver_report_xlsx, name='driver_report_xlsx'),
    path('drivers/summary.json', views.driver_summary_json, name='driver_summary_json'),

    path('vehicles/', views.vehicles_overview, name='vehicles_overview'),
    path('vehicles/<int:vehicle_id>/', views.vehicle_report, name='vehicle_report'),
    path('vehicles/<int:vehicle_id>/export/<str:mode>/', views.vehicle_report_pdf, name='vehicle_report_pdf'),

    path('fuel/', views.fuel_report, name='fuel_report'),
    path('fuel/export/<str:mode>/', views.fuel_report_pdf, name='fuel_report_pdf'),
    path('fuel/export.csv', views.fuel_report_csv, name='fuel_report_csv'),
]
