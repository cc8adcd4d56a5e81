def caller_for(user) -> dict:
    return {"sub": str(user.id), "role": user.role}


def auth_headers(user, *, role: str | None = None) -> dict:
    from cvscreen.app.utils.jwt import create_access_token

    token = create_access_token({"sub": str(user.id), "role": role or user.role})
    return {"Authorization": f"Bearer {token}"}


def build_pdf(text: str, *, padding: int = 0) -> bytes:
    """
    Minimal single-page PDF with one line of Helvetica text.

    `padding` adds an unreferenced binary stream so the file can be made large
    without changing what a reader extracts.
    """
    escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    content = f"BT /F1 12 Tf 72 720 Td ({escaped}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 5 0 R >> >> /Contents 4 0 R >>",
        b"<< /Length " + str(len(content)).encode() + b" >>\nstream\n" + content + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    if padding:
        objects.append(b"<< /Length " + str(padding).encode() + b" >>\nstream\n" + b"\x00" * padding + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for i, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{i} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for off in offsets:
        out += f"{off:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode()
    return bytes(out)


def build_docx(paragraphs: list[str], table_rows: list[list[str]] | None = None) -> bytes:
    from io import BytesIO

    import docx

    d = docx.Document()
    for p in paragraphs:
        d.add_paragraph(p)
    if table_rows:
        table = d.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for r, row in enumerate(table_rows):
            for c, value in enumerate(row):
                table.cell(r, c).text = value
    buf = BytesIO()
    d.save(buf)
    return buf.getvalue()
