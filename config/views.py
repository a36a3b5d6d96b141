import logging

from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """Report whether the app can reach its database."""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except DatabaseError:
        logger.exception("Health check could not reach the database")
        return JsonResponse({'status': 'unhealthy', 'database': 'unavailable'}, status=503)
    return JsonResponse({'status': 'healthy', 'database': 'ok'})


# Same {error, code} body the API views return for service errors
def error_404(request, exception):
    return JsonResponse({'error': 'Not found.', 'code': 'not_found'}, status=404)


def error_500(request):
    return JsonResponse({'error': 'Internal server error.', 'code': 'server_error'}, status=500)
