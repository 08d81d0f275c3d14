"""Configuração da aplicação."""
import os
from dataclasses import dataclass


@dataclass
class TestServiceConfig:
    """Configuração do serviço de teste de mapeamentos."""

    __test__ = False  # not a pytest test class

    base_url: str = "http://localhost:8080"
    test_path: str = "/api/field-mappings/test"
    timeout: int = 60

    @classmethod
    def from_env(cls) -> "TestServiceConfig":
        """Carrega config de variáveis de ambiente."""
        return cls(
            base_url=os.getenv("FIELDFLOW_API_URL", "http://localhost:8080"),
            test_path=os.getenv("FIELDFLOW_TEST_PATH", "/api/field-mappings/test"),
            timeout=int(os.getenv("FIELDFLOW_API_TIMEOUT", "60")),
        )


@dataclass
class AppConfig:
    """Configuração da aplicação."""

    output_dir: str = "./output"
    log_level: str = "WARNING"
    mapping_type: str = "request"  # "request", "response" ou "fault"
    test_service: TestServiceConfig = None

    def __post_init__(self):
        """Inicializa valores padrão."""
        if self.test_service is None:
            self.test_service = TestServiceConfig.from_env()

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Carrega config de variáveis de ambiente."""
        return cls(
            output_dir=os.getenv("FIELDFLOW_OUTPUT_DIR", "./output"),
            log_level=os.getenv("FIELDFLOW_LOG_LEVEL", "WARNING"),
            mapping_type=os.getenv("FIELDFLOW_MAPPING_TYPE", "request"),
            test_service=TestServiceConfig.from_env(),
        )


# Instância global
app_config = AppConfig.from_env()
