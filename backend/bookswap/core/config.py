from __future__ import annotations

import os
from pydantic_settings import BaseSettings


# 应用配置：统一管理环境变量与默认值
class Settings(BaseSettings):
    # 运行环境标识（便于日志、调试、区分开发/生产）
    app_env: str = "dev"
    # FastAPI 根路径（反向代理或子路径部署时使用）
    root_path: str = ""
    # API 前缀（兼容多版本路由或网关转发）
    api_prefix: str | None = None
    # 运行时数据根目录（SQLite 数据库等）
    data_dir: str = "data"
    # SQLite 数据库文件路径（默认本地文件）
    sqlite_path: str = "data/bookswap.db"
    # 可选数据库连接串（优先用于 PostgreSQL 等外部数据库）
    database_url: str | None = None
    # 日志级别
    log_level: str = "INFO"

    # Celery Broker（任务队列）连接地址
    celery_broker_url: str = "redis://localhost:6379/0"
    # Celery 结果存储地址
    celery_result_backend: str = "redis://localhost:6379/1"
    # 本地同步执行任务（测试/单进程部署）
    celery_task_always_eager: bool = False

    # JWT 签名密钥（HS256）
    jwt_secret: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    # 访问令牌有效期（分钟）
    access_token_ttl_minutes: int = 60 * 24
    # 刷新令牌有效期（天）
    refresh_token_ttl_days: int = 30
    # 注册时自动授予 admin 角色的邮箱（逗号分隔）
    admin_emails: str = ""

    # 允许跨域访问的前端地址列表（逗号分隔）
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # 每积分价格（最小货币单位）
    point_price: int = 3
    # 单次购买积分上限
    max_points_per_purchase: int = 10_000

    # 社区贡献奖励积分
    reward_listing_points: int = 5
    reward_history_points: int = 2
    reward_thread_points: int = 2
    reward_post_points: int = 1

    # 内容审核词表（逗号分隔）：blocked 直接拒绝，flagged 保存但隐藏
    moderation_blocked_terms: str = "kill yourself,kys,nazi,faggot,retard"
    moderation_flagged_terms: str = "idiot,stupid,moron,dumb,hate you,shut up,scam,spam"

    # Pydantic Settings 行为配置
    class Config:
        env_file = (
            os.getenv("APP_ENV_FILE") or "config/.env",
            "backend/config/.env",
            ".env",
        )
        case_sensitive = False
        extra = "ignore" if os.getenv("APP_ENV", "dev").lower() == "dev" else "forbid"

    # 解析 CORS 允许域名列表（供中间件直接使用）
    @property
    def cors_origin_list(self) -> list[str]:
        return _split_csv(self.cors_origins)

    @property
    def admin_email_list(self) -> list[str]:
        return [item.lower() for item in _split_csv(self.admin_emails)]

    @property
    def blocked_term_list(self) -> list[str]:
        return _split_csv(self.moderation_blocked_terms)

    @property
    def flagged_term_list(self) -> list[str]:
        return _split_csv(self.moderation_flagged_terms)

    # 确保运行时数据目录存在（启动时创建必要目录）
    def ensure_dirs(self) -> None:
        for path in (self.data_dir, os.path.dirname(self.sqlite_path)):
            if path:
                os.makedirs(path, exist_ok=True)


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


# 全局配置实例
settings = Settings()
