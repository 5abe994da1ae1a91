from django.contrib import admin
from django.urls import include, path

from . import views

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/pay/", include("payments.urls")),
    path("healthz", views.healthz_view, name="healthz"),
]

handler404 = "poolpay.views.error_404_view"
handler500 = "poolpay.views.error_500_view"
