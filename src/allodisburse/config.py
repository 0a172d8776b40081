from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # JSON object of chain id -> RPC URL, e.g. RPC_URLS='{"10": "https://..."}'
    rpc_urls: dict[int, str] = {}
    networks_file: str = ""  # optional JSON file overriding the built-in networks
    rpc_rate_per_second: float = 10.0
    rpc_timeout: float = 30.0
    receipt_poll_interval: float = 2.0
    receipt_max_polls: int = 90
    confirm_intermediate_steps: bool = True  # wait for allocate/updateDistribution receipts
    default_metadata_pointer: str = ""

    class Config:
        env_file = ".env"
