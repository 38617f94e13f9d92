# backend/mt_core/hospitals/apps.py
from django.apps import AppConfig


class HospitalsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "mt_core.hospitals"
    label = "hospitals"
