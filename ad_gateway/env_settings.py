from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .ad import ADConfig


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(populate_by_name=True, env_file=".env", extra="ignore")

    ad_dc_short: str = Field("", alias="AD_DC_SHORT")
    ad_domain: str = Field("", alias="AD_DOMAIN")
    ad_conn_mode: Literal["ldaps", "starttls"] = Field("ldaps", alias="AD_CONN_MODE")
    ad_port: Optional[int] = Field(None, alias="AD_PORT")
    ad_bind_username: str = Field("", alias="AD_BIND_USERNAME")
    ad_bind_password: str = Field("", alias="AD_BIND_PASSWORD", repr=False)
    ad_tls_validate: bool = Field(False, alias="AD_TLS_VALIDATE")
    ad_ca_pem: str = Field("", alias="AD_CA_PEM", repr=False)
    ad_connect_timeout_s: float = Field(5.0, alias="AD_CONNECT_TIMEOUT_S", gt=0)

    log_level: str = Field("INFO", alias="LOG_LEVEL")


@lru_cache(maxsize=1)
def get_env() -> EnvSettings:
    return EnvSettings()


def ad_cfg_from_env(env: EnvSettings) -> ADConfig | None:
    """Build ADConfig from environment settings; None when AD is not configured."""
    if not env.ad_dc_short or not env.ad_domain or not env.ad_bind_username:
        return None

    if env.ad_conn_mode == "ldaps":
        port, use_ssl, starttls = 636, True, False
    else:
        port, use_ssl, starttls = 389, False, True

    return ADConfig(
        dc_short=env.ad_dc_short,
        domain=env.ad_domain,
        port=env.ad_port or port,
        use_ssl=use_ssl,
        starttls=starttls,
        bind_username=env.ad_bind_username,
        bind_password=env.ad_bind_password,
        tls_validate=env.ad_tls_validate,
        ca_pem=env.ad_ca_pem or "",
        connect_timeout_s=env.ad_connect_timeout_s,
    )
