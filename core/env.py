import os
import yaml
from dotenv import load_dotenv

# Carrega variáveis de ambiente (.env) logo no início
load_dotenv()

# ==============================================================================
# 1. GERENCIAMENTO DE ARQUIVOS YAML (Configurações do Projeto)
# ==============================================================================
def load_config(base_path: str = None):
    """
    Carrega a configuração unificada do projeto (settings.yaml).
    Suporta sobrescrita por dev.yaml para ambiente de desenvolvimento.
    """
    # Caminho base (sobe um nível da pasta core)
    if base_path is None:
        base_path = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    config_path = os.path.join(base_path, 'configs', 'settings.yaml')

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"❌ Arquivo de configuração não encontrado: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    # Sobrescrita de Desenvolvimento (Opcional)
    dev_path = os.path.join(base_path, 'configs', 'dev.yaml')
    if os.path.exists(dev_path):
        with open(dev_path, 'r') as f:
            dev_config = yaml.safe_load(f)
            if dev_config:
                config = merge_config(config, dev_config)

    return config


def merge_config(base: dict, override: dict) -> dict:
    """Mescla recursivamente: blocos aninhados do dev.yaml não apagam o resto."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged

# ==============================================================================
# 2. CREDENCIAIS DO SUPABASE
# ==============================================================================
class SupabaseEnv:
    def __init__(self):
        self.url = os.getenv("SUPABASE_URL")
        # Service Role: escrita (ignora RLS). Anon: leitura pública.
        self.service_role_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        self.anon_key = os.getenv("SUPABASE_KEY")

    @property
    def can_write(self) -> bool:
        return bool(self.url and self.service_role_key)

    @property
    def can_read(self) -> bool:
        return bool(self.url and self.anon_key)


def load_supabase_env():
    """
    Lê as credenciais do Supabase.
    A ausência da chave de serviço desabilita apenas a escrita.
    """
    env = SupabaseEnv()

    if not env.url:
        print("⚠️ AVISO: SUPABASE_URL não encontrada no .env.")
    elif not env.service_role_key:
        print("⚠️ AVISO: SUPABASE_SERVICE_ROLE_KEY ausente. Operações de escrita vão falhar.")

    return env
