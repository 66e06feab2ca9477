from django.urls import path
from . import views

urlpatterns = [
    path('reports/dashboard/', views.dashboard, name='report-dashboard'),
    path('reports/production-overview/', views.production_overview, name='report-production-overview'),
    path('reports/production/', views.production_report, name='report-production'),
    path('reports/weekly-production/', views.weekly_production, name='report-weekly-production'),
    path('reports/recent-activity/', views.recent_activity, name='report-recent-activity'),
    path('reports/top-customers/', views.top_customers, name='report-top-customers'),
]
