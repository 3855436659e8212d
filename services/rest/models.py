from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Condition = Literal["above", "below"]
PaymentMethod = Literal["usdc", "cash"]
Network = Literal["devnet", "mainnet"]
WalletProvider = Literal["legacy", "cdp"]
SentinelStatus = Literal["unfunded", "ready", "monitoring", "paused"]


class HealthResponse(BaseModel):
    status: str = Field(default="ok")

class LatestPrice(BaseModel):
    t: str  # ISO8601
    c: float
    origin: str

class ActivityPoint(BaseModel):
    price: float
    created_at: str  # ISO8601
    triggered: bool = False

class LivePriceResponse(BaseModel):
    success: bool = True
    activities: List[ActivityPoint]
    count: int
    origin: str
    fallback: Optional[bool] = None
    isSampleData: Optional[bool] = None
    message: Optional[str] = None
    timestamp: Optional[str] = None

class ErrorResponse(BaseModel):
    success: bool = False
    error: str

class OracleResponse(BaseModel):
    success: bool = True
    oracleAddress: str
    message: str
    tip: Optional[str] = None
    instructions: Optional[List[str]] = None

class OracleDebugResponse(BaseModel):
    success: bool = True
    oracleAddress: str
    network: str
    feedMode: str
    priceProvider: str


# Storage records. Persistence lives elsewhere; these only describe the shapes.

class Sentinel(BaseModel):
    id: str
    user_id: str
    wallet_address: str
    wallet_provider: WalletProvider
    cdp_wallet_id: Optional[str] = None
    cdp_wallet_address: Optional[str] = None
    legacy_private_key: Optional[str] = None  # deprecated, base58
    threshold: float
    condition: Condition
    payment_method: PaymentMethod
    discord_webhook: str
    network: Network
    is_active: bool
    status: SentinelStatus
    created_at: str
    updated_at: str

    def is_triggered(self, price: float) -> bool:
        if self.condition == "above":
            return price > self.threshold
        return price < self.threshold

class SentinelInsert(BaseModel):
    user_id: str
    wallet_address: str
    wallet_provider: WalletProvider
    cdp_wallet_id: Optional[str] = None
    cdp_wallet_address: Optional[str] = None
    legacy_private_key: Optional[str] = None
    threshold: float
    condition: Condition
    payment_method: PaymentMethod
    discord_webhook: str
    network: Network
    is_active: bool

class SentinelUpdate(BaseModel):
    wallet_address: Optional[str] = None
    wallet_provider: Optional[WalletProvider] = None
    cdp_wallet_id: Optional[str] = None
    cdp_wallet_address: Optional[str] = None
    legacy_private_key: Optional[str] = None
    threshold: Optional[float] = None
    condition: Optional[Condition] = None
    payment_method: Optional[PaymentMethod] = None
    discord_webhook: Optional[str] = None
    network: Optional[Network] = None
    is_active: Optional[bool] = None
    status: Optional[SentinelStatus] = None
    updated_at: Optional[str] = None

class SentinelConfig(BaseModel):
    wallet_address: str
    wallet_provider: WalletProvider
    cdp_wallet_id: Optional[str] = None
    cdp_wallet_address: Optional[str] = None
    legacy_private_key: Optional[str] = None
    threshold: float
    condition: Condition
    payment_method: PaymentMethod
    discord_webhook: str
    network: Network

class Activity(BaseModel):
    id: str
    user_id: str
    sentinel_id: str
    price: float
    cost: float
    settlement_time: Optional[float] = None  # ms
    payment_method: Optional[str] = None
    transaction_signature: Optional[str] = None
    triggered: bool
    status: str
    created_at: str

class ActivityInsert(BaseModel):
    sentinel_id: str
    user_id: str
    price: float
    cost: float
    settlement_time: Optional[float] = None
    payment_method: Optional[str] = None
    transaction_signature: Optional[str] = None
    triggered: bool = False
    status: str = "success"

class AIAnalysis(BaseModel):
    id: str
    sentinel_id: str
    user_id: str
    analysis_text: str
    confidence_score: float = Field(ge=0, le=100)
    sentiment: str
    cost: float
    created_at: str

class AIAnalysisInsert(BaseModel):
    sentinel_id: str
    user_id: str
    analysis_text: str
    confidence_score: float = Field(ge=0, le=100)
    sentiment: str
    cost: float

class ActivityStats(BaseModel):
    total_checks: int
    total_spent: float
    alerts_triggered: int
    success_rate: float
    avg_cost: float
    last_check: Optional[str] = None

class Profile(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: str
    updated_at: str

class ProfileUpdate(BaseModel):
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
