"""
Armazenamento de arquivos (pôsteres) endereçado por caminho lógico.

O caminho lógico inclui o hash SHA-256 do conteúdo, então regravar o mesmo
arquivo é idempotente.
"""

import hashlib
import os

from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

from ..common.exceptions import FileStorageError


def sha256_hex(conteudo: bytes) -> str:
    return hashlib.sha256(conteudo).hexdigest()


def caminho_poster(submissao_id: int, hash_hex: str, extensao: str) -> str:
    return f"posters/{submissao_id}/{hash_hex}.{extensao}"


class LocalStorage:
    """Arquivos em disco, abaixo de uma pasta raiz."""

    def __init__(self, raiz):
        self.raiz = os.path.abspath(raiz)

    def _resolver(self, caminho):
        destino = os.path.abspath(os.path.join(self.raiz, caminho))
        if os.path.commonpath([self.raiz, destino]) != self.raiz:
            raise FileStorageError(caminho, 'caminho fora da pasta de uploads')
        return destino

    def salvar(self, caminho, conteudo, mime_type=None):
        destino = self._resolver(caminho)
        try:
            os.makedirs(os.path.dirname(destino), exist_ok=True)
            tmp = destino + '.tmp'
            with open(tmp, 'wb') as fh:
                fh.write(conteudo)
            os.replace(tmp, destino)
        except OSError as e:
            raise FileStorageError(caminho, str(e)) from e
        return caminho

    def ler(self, caminho):
        try:
            with open(self._resolver(caminho), 'rb') as fh:
                return fh.read()
        except OSError as e:
            raise FileStorageError(caminho, str(e)) from e

    def remover(self, caminho):
        try:
            os.remove(self._resolver(caminho))
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FileStorageError(caminho, str(e)) from e


class R2Storage:
    """Bucket S3-compatível (Cloudflare R2) via boto3."""

    def __init__(self, client, bucket):
        self.client = client
        self.bucket = bucket

    def salvar(self, caminho, conteudo, mime_type=None):
        extra = {'ContentType': mime_type} if mime_type else {}
        try:
            self.client.put_object(Bucket=self.bucket, Key=caminho, Body=conteudo, **extra)
        except (BotoCoreError, ClientError) as e:
            raise FileStorageError(caminho, str(e)) from e
        return caminho

    def ler(self, caminho):
        try:
            resp = self.client.get_object(Bucket=self.bucket, Key=caminho)
            return resp['Body'].read()
        except (BotoCoreError, ClientError) as e:
            raise FileStorageError(caminho, str(e)) from e

    def remover(self, caminho):
        try:
            self.client.delete_object(Bucket=self.bucket, Key=caminho)
        except (BotoCoreError, ClientError) as e:
            raise FileStorageError(caminho, str(e)) from e


def get_storage():
    return current_app.extensions['trabalhos_storage']
