import os
try:
    import magic
    MAGIC_AVAILABLE = True
except ImportError:
    MAGIC_AVAILABLE = False
from flask import current_app
from werkzeug.utils import secure_filename

# Formatos aceitos para pôster e os MIME types que o libmagic reporta para cada um
POSTER_EXTENSIONS = {
    'pdf': ['application/pdf'],
    'ppt': ['application/vnd.ms-powerpoint', 'application/CDFV2', 'application/x-ole-storage'],
    'pptx': [
        'application/vnd.openxmlformats-officedocument.presentationml.presentation',
        'application/zip',
    ],
    'png': ['image/png'],
    'jpg': ['image/jpeg'],
    'jpeg': ['image/jpeg'],
}

# MIME servido no download, independente do que o libmagic detectou
POSTER_CONTENT_TYPES = {
    'pdf': 'application/pdf',
    'ppt': 'application/vnd.ms-powerpoint',
    'pptx': 'application/vnd.openxmlformats-officedocument.presentationml.presentation',
    'png': 'image/png',
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
}

MAX_FILE_SIZE = 20 * 1024 * 1024


def get_file_extension(filename):
    if filename and '.' in filename:
        return filename.rsplit('.', 1)[1].lower()
    return None


def allowed_file(filename, allowed=POSTER_EXTENSIONS):
    return get_file_extension(filename) in allowed


def validate_file_content(file_stream, filename, allowed=POSTER_EXTENSIONS):
    extension = get_file_extension(filename)
    if not extension:
        return False, "Arquivo sem extensão", None
    if extension not in allowed:
        return False, f"Extensão .{extension} não permitida", None
    if not MAGIC_AVAILABLE:
        return True, None, None
    file_stream.seek(0)
    file_header = file_stream.read(2048)
    file_stream.seek(0)
    detected_mime = magic.Magic(mime=True).from_buffer(file_header)
    allowed_mimes = allowed[extension]
    if detected_mime not in allowed_mimes:
        current_app.logger.warning(
            f"MIME type mismatch: file '{filename}' has extension .{extension} "
            f"but MIME type is {detected_mime} (expected: {allowed_mimes})"
        )
        return False, f"Conteúdo do arquivo não corresponde à extensão .{extension}", detected_mime
    return True, None, detected_mime


def validate_file_size(file_stream, max_size=MAX_FILE_SIZE):
    file_stream.seek(0, os.SEEK_END)
    file_size = file_stream.tell()
    file_stream.seek(0)
    if file_size > max_size:
        max_size_mb = max_size / (1024 * 1024)
        file_size_mb = file_size / (1024 * 1024)
        return False, f"Arquivo muito grande ({file_size_mb:.2f} MB). Máximo: {max_size_mb:.0f} MB", file_size
    if file_size == 0:
        return False, "Arquivo vazio", file_size
    return True, None, file_size


def validate_uploaded_file(file, filename=None, max_size=MAX_FILE_SIZE, allowed=POSTER_EXTENSIONS):
    """
    Valida nome, extensão, tamanho e conteúdo de um upload.

    Retorna (ok, erro, metadata).
    """
    if not file:
        return False, "Nenhum arquivo enviado", None
    filename = filename or file.filename
    if not filename:
        return False, "Nome de arquivo inválido", None
    if not allowed_file(filename, allowed):
        extension = get_file_extension(filename)
        permitidas = ', '.join(sorted(allowed))
        return False, f"Tipo de arquivo não permitido: .{extension}. Formatos aceitos: {permitidas}", None
    size_valid, size_error, file_size = validate_file_size(file.stream, max_size)
    if not size_valid:
        return False, size_error, None
    content_valid, content_error, detected_mime = validate_file_content(file.stream, filename, allowed)
    if not content_valid:
        return False, content_error, None
    extension = get_file_extension(filename)
    metadata = {
        'original_filename': filename,
        'safe_filename': secure_filename(filename) or f"poster.{extension}",
        'extension': extension,
        'mime_type': POSTER_CONTENT_TYPES.get(extension) or detected_mime,
        'detected_mime': detected_mime,
        'size_bytes': file_size,
    }
    return True, None, metadata
