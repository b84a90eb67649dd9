import qrcode
import base64
from io import BytesIO

def generate_qr_code(data: str, box_size: int = 8, border: int = 4) -> str:
    """
    Génère un QR code (PNG) et le retourne sous forme de data URI base64.

    Args:
        data: contenu à encoder, ex. une URI de paiement "bitcoin:<adresse>?amount=<montant>"
        box_size: taille en pixels de chaque module
        border: largeur de la marge en modules

    Returns:
        "data:image/png;base64,..." directement utilisable dans un <img src>.
    """
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffered = BytesIO()
    img.save(buffered, format="PNG")
    encoded = base64.b64encode(buffered.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"
