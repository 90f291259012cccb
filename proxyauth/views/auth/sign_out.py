from django.http import HttpResponseRedirect
from django.contrib.auth import logout
from django.conf import settings


def signout_view(request):
    # user_logged_out clears the cached principal before the session is flushed
    logout(request)
    return HttpResponseRedirect(getattr(settings, "LOGOUT_REDIRECT_URL", None) or "/")
