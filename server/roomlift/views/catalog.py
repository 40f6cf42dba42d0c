from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from roomlift.models import AIModel, EnhancementLog
from roomlift.serializers import (
    AIModelSerializer,
    CreditTransactionSerializer,
    EnhancementLogSerializer,
)

HISTORY_LIMIT = 50
TRANSACTIONS_LIMIT = 20


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def list_ai_models(request):
    """
    Active AI models, in display order.
    """
    models = AIModel.objects.filter(is_active=True)
    serializer = AIModelSerializer(models, many=True)
    return Response(serializer.data)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def credit_summary(request):
    """
    Current balance and the latest credit movements.
    """
    request.user.refresh_from_db(fields=["credit_balance"])
    transactions = request.user.credit_transactions.all()[:TRANSACTIONS_LIMIT]

    return Response(
        {
            "balance": str(request.user.credit_balance),
            "transactions": CreditTransactionSerializer(transactions, many=True).data,
        }
    )


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def enhancement_history(request):
    """
    User's recent jobs, optionally filtered with ?kind=enhancement|decoration.
    """
    logs = EnhancementLog.objects.filter(user=request.user).select_related("ai_model")
    kind = request.query_params.get("kind")
    if kind:
        logs = logs.filter(kind=kind)

    serializer = EnhancementLogSerializer(logs[:HISTORY_LIMIT], many=True)
    return Response(serializer.data)
