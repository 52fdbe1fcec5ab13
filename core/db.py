# ARQUIVO: core/db.py
import logging
from supabase import create_client, Client

from core.env import SupabaseEnv

# Configuração de Log
logger = logging.getLogger(__name__)

# --- CACHE GLOBAL DE CONEXÕES ---
# Uma conexão por tipo de chave durante a vida do processo
_CLIENT_CACHE = {
    "service": None,
    "anon": None
}


class ConfigurationError(Exception):
    """Credencial obrigatória ausente (ex: SUPABASE_SERVICE_ROLE_KEY para escrita)."""
    pass


class DatabaseManager:
    def __init__(self, use_service_role: bool = False, client: Client = None):
        self.use_service_role = use_service_role
        self.mode_label = "ALTO PRIVILÉGIO (Service Role)" if use_service_role else "PRIVILÉGIO LIMITADO (Anon)"
        # Um client injetado (testes, scripts) dispensa o .env
        self.client = client if client is not None else self._get_connection(use_service_role)

    def _get_connection(self, use_service_role: bool) -> Client:
        """
        Recupera a conexão do cache global ou cria uma nova.
        """
        key_type = "service" if use_service_role else "anon"

        # 1. Se já existe no cache, usa ela
        if _CLIENT_CACHE[key_type] is not None:
            return _CLIENT_CACHE[key_type]

        # 2. Configuração de Credenciais
        env = SupabaseEnv()
        key = env.service_role_key if use_service_role else env.anon_key

        if not env.url or not key:
            logger.critical(f"❌ Credenciais ausentes para: {self.mode_label}")
            return None

        # 3. create_client não abre socket; erro aqui é de configuração (URL/chave inválida)
        try:
            client = create_client(env.url, key)
        except Exception as e:
            logger.critical(f"❌ Falha ao criar client Supabase ({self.mode_label}): {e}")
            return None

        _CLIENT_CACHE[key_type] = client
        logger.info(f"✅ Conexão estabelecida e cacheada: {self.mode_label}")
        return client

    def require_client(self) -> Client:
        """Retorna o client ou levanta ConfigurationError se as credenciais faltarem."""
        if self.client is None:
            if self.use_service_role:
                raise ConfigurationError(
                    "Supabase admin client not initialized. Please set SUPABASE_SERVICE_ROLE_KEY in .env"
                )
            raise ConfigurationError(
                "Supabase public client not initialized. Please set SUPABASE_KEY in .env"
            )
        return self.client


def reset_client_cache():
    """Esvazia o cache de conexões (usado por testes e por troca de credenciais)."""
    for key in _CLIENT_CACHE:
        _CLIENT_CACHE[key] = None
