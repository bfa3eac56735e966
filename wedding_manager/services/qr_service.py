"""
QR code generation service
"""

import io
import qrcode

from wedding_manager.core.config import settings

class QRService:
    """Service for generating QR codes for the guest-facing pages"""

    PAGES = {
        "invite": "/invite",
        "checkin": "/checkin",
        "lottery": "/lottery",
    }

    @staticmethod
    def get_page_url(page: str) -> str:
        """Get the URL that the QR code will redirect to"""
        return f"{settings.BASE_URL.rstrip('/')}{QRService.PAGES[page]}"

    @staticmethod
    def generate_qr(url: str, format: str = 'PNG') -> bytes:
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(url)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        img.save(buffer, format=format)
        return buffer.getvalue()

    @staticmethod
    def generate_page_qr(page: str) -> bytes:
        return QRService.generate_qr(QRService.get_page_url(page))
