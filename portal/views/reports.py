from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsManager, IsSecretary
from portal.serializers.clinic import DateRangeQuerySerializer
from portal.serializers.payments import DailyReportQuerySerializer
from portal.services import reports as svc
from portal.services.backend import client_for


def _daily(request):
    q = DailyReportQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    day = q.validated_data.get('date')
    report = svc.daily_report(client_for(request), request.user.role, day.isoformat() if day else None)
    return Response({'ok': True, 'data': report})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def clinic_daily_report(request):
    return _daily(request)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSecretary])
def secretary_daily_report(request):
    return _daily(request)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def clinic_reports(request):
    """Period report (defaults to the current month) with the collection rate."""
    q = DateRangeQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    start, end = q.validated_data.get('start_date'), q.validated_data.get('end_date')
    data = svc.clinic_report(
        client_for(request),
        start.isoformat() if start else None,
        end.isoformat() if end else None,
    )
    return Response({'ok': True, 'data': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def revenue_analytics(request):
    try:
        days = int(request.query_params.get('days', 7))
    except (TypeError, ValueError):
        days = 7
    days = min(max(days, 1), 90)
    return Response({'ok': True, 'data': svc.revenue_analytics(client_for(request), days)})
