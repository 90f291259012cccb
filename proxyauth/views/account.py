from django.http import JsonResponse


def whoami(request):
    """Describe the principal the proxy authenticated for this request."""
    user = request.user
    if not user.is_authenticated:
        return JsonResponse({"authenticated": False}, status=401)

    outcome = getattr(request, "proxyauth_outcome", None)

    return JsonResponse({
        "authenticated": True,
        "username": user.get_username(),
        "full_name": user.get_full_name(),
        "email": user.email or None,
        "groups": sorted(user.groups.values_list("name", flat=True)),
        "state": outcome.state.value if outcome is not None else None,
    })
