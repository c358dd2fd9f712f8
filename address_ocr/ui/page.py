"""Server-rendered page for one session.

The page mirrors the session state: the upload form is always shown, the
preview only once an image exists, and the extracted text, map links and
GeoJSON button only once text has been recognized. The OCR button is
disabled while the session is busy.
"""
from __future__ import annotations

import html

from address_ocr.export.map_links import MapLink, render_map_links
from address_ocr.session.state import Session

_STYLE = """
body { padding: 16px; margin: 0 auto; font-family: sans-serif; font-size: 16px; line-height: 1.5; }
h2 { font-size: 20px; margin-bottom: 12px; }
h3 { font-size: 16px; }
img.preview { width: 100%; max-height: 300px; object-fit: contain; margin-bottom: 10px; border-radius: 8px; }
button { width: 100%; padding: 12px; font-size: 16px; color: #fff; border: none; border-radius: 8px; margin-bottom: 12px; }
button.ocr { background-color: #007bff; }
button.export { background-color: #28a745; }
.ocr-text { white-space: pre-wrap; margin-bottom: 16px; }
.map-link { margin-bottom: 6px; }
.map-link a { color: #007bff; text-decoration: underline; }
"""


def render_page(session: Session, links: list[MapLink]) -> str:
    base = f"/sessions/{session.id}"
    parts = [
        "<!DOCTYPE html>",
        '<html lang="ja">',
        "<head>",
        '<meta charset="utf-8">',
        '<meta name="viewport" content="width=device-width, initial-scale=1">',
        "<title>OCRで住所読み取り</title>",
        f"<style>{_STYLE}</style>",
        "</head>",
        "<body>",
        "<h2>📷 OCRで住所読み取り</h2>",
        f'<form method="post" action="{base}/image" enctype="multipart/form-data">',
        '<input type="file" name="file" accept="image/*">',
        '<input type="submit" value="アップロード">',
        "</form>",
    ]

    if session.image is not None:
        parts.append(
            f'<img class="preview" src="{html.escape(session.image.data_uri, quote=True)}" alt="preview">'
        )

    disabled = " disabled" if session.busy else ""
    label = "読み取り中…" if session.busy else "OCR 実行"
    parts += [
        f'<form method="post" action="{base}/ocr">',
        f'<button class="ocr" type="submit"{disabled}>{label}</button>',
        "</form>",
    ]

    if session.has_text:
        parts += [
            '<div class="ocr-text">',
            "<h3>📄 抽出結果</h3>",
            f"<p>{html.escape(session.text)}</p>",
            "</div>",
            "<div>",
            "<h3>📍 Googleマップで表示</h3>",
            render_map_links(links),
            "</div>",
            f'<form method="post" action="{base}/geojson">',
            '<button class="export" type="submit">🗺 GeoJSONを生成してダウンロード</button>',
            "</form>",
        ]

    parts += ["</body>", "</html>"]
    return "\n".join(parts)
