"""
UPI payment handoff.

Builds ``upi://pay`` deep links and QR codes so the payer can open a UPI
app with payee, amount and note prefilled. The app itself does the
transfer; nothing here talks to a payment network.

Classes:
    UPIPaymentGenerator: Deep links, app-specific links and QR images.

Example:
    Link for a pending settlement::

        from apps.settlements.services import UPIPaymentGenerator

        payload = UPIPaymentGenerator.generate_for_settlement(settlement)
        payload['upi_link']
        # 'upi://pay?pa=alice%40okaxis&pn=Alice&am=150.00&cu=INR&tn=Group+settlement'
"""

from urllib.parse import urlencode

import qrcode
from django.conf import settings

from apps.settlements.engine import format_major
from apps.settlements.exceptions import (
    InvalidSettlementTransitionError,
    PayeeHandleMissingError,
)


class UPIPaymentGenerator:
    """
    Generate UPI deep links and QR codes.

    Format::

        upi://pay?pa=<upi_id>&pn=<payee name>&am=<amount>&cu=<currency>&tn=<note>

    Fields:
        - pa: Payee address (UPI ID, e.g. ``alice@okaxis``)
        - pn: Payee name shown in the app
        - am: Amount in rupees with two decimals
        - cu: Currency code (INR)
        - tn: Transaction note

    App-specific schemes carry the same query string, so apps that
    register them open directly instead of showing a chooser.
    """

    APP_SCHEMES = {
        'gpay': 'gpay://upi/pay',
        'phonepe': 'phonepe://pay',
    }

    @staticmethod
    def _query(upi_id, payee_name, amount_minor, note='', currency=None):
        params = {
            'pa': upi_id,
            'pn': payee_name,
            'am': format_major(amount_minor),
            'cu': currency or settings.SETTLEMENT_CURRENCY,
        }
        if note:
            params['tn'] = note
        return urlencode(params)

    @staticmethod
    def generate_upi_link(upi_id, payee_name, amount_minor, note='', currency=None):
        """
        Build a generic ``upi://pay`` link.

        Args:
            upi_id (str): Payee UPI ID.
            payee_name (str): Name shown to the payer.
            amount_minor (int): Amount in paise.
            note (str, optional): Transaction note.
            currency (str, optional): Defaults to ``SETTLEMENT_CURRENCY``.

        Returns:
            str: URL-encoded deep link.
        """
        query = UPIPaymentGenerator._query(upi_id, payee_name, amount_minor, note, currency)
        return f"upi://pay?{query}"

    @staticmethod
    def generate_app_links(upi_id, payee_name, amount_minor, note='', currency=None):
        """
        Links for the common UPI apps.

        Returns:
            dict: ``generic``, ``gpay``, ``phonepe`` and ``paytm`` links.
            Paytm handles the generic scheme.
        """
        query = UPIPaymentGenerator._query(upi_id, payee_name, amount_minor, note, currency)
        generic = f"upi://pay?{query}"
        links = {'generic': generic}
        for app, base in UPIPaymentGenerator.APP_SCHEMES.items():
            links[app] = f"{base}?{query}"
        links['paytm'] = generic
        return links

    @staticmethod
    def generate_qr_image(payload, output=None):
        """
        Encode a link as a QR code.

        Args:
            payload (str): Usually the generic UPI link.
            output (str | file-like, optional): Where to write the PNG.
                If None, the PIL image is returned.

        Returns:
            PIL.Image.Image | str | file-like: The image, or ``output``
            after the PNG has been written to it.

        Note:
            Error correction level M (15% recovery).
        """
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(payload)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        if output is not None:
            img.save(output, format='PNG')
            return output

        return img

    @staticmethod
    def generate_for_settlement(settlement):
        """
        Payment payload for an open settlement, paid to its receiver.

        Returns:
            dict: ``upi_link``, ``app_links``, ``payee_upi_id``,
            ``payee_name``, ``amount``, ``amount_display``, ``currency``
            and ``note``.

        Raises:
            InvalidSettlementTransitionError: If the settlement is
                confirmed or cancelled.
            PayeeHandleMissingError: If the receiver has no UPI ID.
        """
        if settlement.is_terminal:
            raise InvalidSettlementTransitionError(
                f"No payment link for a settlement that is {settlement.status}"
            )

        payee = settlement.to_user
        if not payee.has_payment_handle:
            raise PayeeHandleMissingError(
                f"{payee.get_display_name()} has not added a UPI ID"
            )

        note = settlement.note or settlement.group.name or settings.UPI_TRANSACTION_NOTE
        payee_name = payee.get_display_name()
        return {
            'upi_link': UPIPaymentGenerator.generate_upi_link(
                payee.upi_id, payee_name, settlement.amount, note, settlement.currency
            ),
            'app_links': UPIPaymentGenerator.generate_app_links(
                payee.upi_id, payee_name, settlement.amount, note, settlement.currency
            ),
            'payee_upi_id': payee.upi_id,
            'payee_name': payee_name,
            'amount': settlement.amount,
            'amount_display': format_major(settlement.amount),
            'currency': settlement.currency,
            'note': note,
        }
