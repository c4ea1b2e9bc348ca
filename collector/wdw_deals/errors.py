"""例外定義."""


class CollectorError(Exception):
    """収集処理の基底例外."""


class FetchError(CollectorError):
    """外部ソースの取得失敗（HTTP エラー・通信エラー・不正なレスポンス）."""


class PersistenceError(CollectorError):
    """Supabase への読み書き失敗."""
