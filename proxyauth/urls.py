"""
URL configuration for proxyauth.

Hosts include these with ``path("auth/", include("proxyauth.urls"))``.
"""

from django.urls import path

from proxyauth.views.account import whoami
from proxyauth.views.auth.sign_out import signout_view

urlpatterns = [
    path("whoami", whoami, name="proxyauth.whoami"),
    path("sign-out", signout_view, name="proxyauth.sign_out"),
]
