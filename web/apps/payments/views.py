from rest_framework.response import Response

from apps.common import errors
from apps.common.views import NO_STORE, DomainAPIView
from apps.orders.providers import get_state_machine
from .providers import get_payment_gateway
from .schemas import BoletoConfirmationOut
from .services import BoletoService


class BoletoConfirmView(DomainAPIView):
    """Bank-side confirmation of a boleto slip.

    Stands in for the provider webhook, so it is restricted to operators.
    """

    def put(self, request, digital_line):
        if not getattr(request.user, "is_staff", False):
            raise errors.OwnershipViolation("Only operators may confirm boletos")
        payment = BoletoService(get_payment_gateway(), get_state_machine()).confirm(digital_line)
        return Response(BoletoConfirmationOut.from_model(payment).model_dump(mode="json"), headers=NO_STORE)
