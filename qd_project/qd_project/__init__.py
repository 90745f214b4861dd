# Celery instance is defined in qd_project/celery.py
# and shares the Django settings module
from .celery import celery_app

# 'from qd_project import *', only exports celery_app
__all__ = ("celery_app",)

""" Run workers with "celery -A qd_project worker -l info" """
