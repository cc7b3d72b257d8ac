import io

import qrcode
from PIL import Image, ImageDraw, ImageFont


def render_pickup_qr(qr_data, label=None, box_size=10, border=2):
    """Render the pickup QR text to PNG bytes, optionally with the code printed below."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(qr_data)
    qr.make(fit=True)

    qr_img = qr.make_image(fill_color="black", back_color="white").convert("RGB")

    if label:
        qr_size = qr_img.size[0]
        label_height = 40
        final_img = Image.new("RGB", (qr_size, qr_size + label_height), "white")
        final_img.paste(qr_img, (0, 0, qr_size, qr_size))

        draw = ImageDraw.Draw(final_img)
        font = ImageFont.load_default()
        bbox = draw.textbbox((0, 0), label, font=font)
        text_width = bbox[2] - bbox[0]
        draw.text(((qr_size - text_width) // 2, qr_size + 12), label, fill="black", font=font)
        qr_img = final_img

    output = io.BytesIO()
    qr_img.save(output, format="PNG")
    return output.getvalue()
