from django.conf import settings

from .sessions import resolve_session


class CustomerSessionMiddleware:
    """
    Attaches `request.customer` (or None) from the `session` cookie.
    Suspended customers are treated as signed out.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.customer = None
        request.customer_session = None

        token = request.COOKIES.get(settings.CUSTOMER_SESSION_COOKIE)
        session = resolve_session(token)
        if session is not None and session.customer.is_active_customer:
            request.customer = session.customer
            request.customer_session = session

        return self.get_response(request)
