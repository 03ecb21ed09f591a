from django.urls import path
from .views import ProviderWebhookView

urlpatterns = [
    path("provider", ProviderWebhookView.as_view(), name="provider-webhook"),
]
