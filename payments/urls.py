from django.urls import path
from . import views
app_name = "payments"
urlpatterns = [
    path("create", views.create_view, name="create"),
    path("status", views.status_view, name="status"),
    path("mark_paid", views.mark_paid_view, name="mark_paid"),
]
