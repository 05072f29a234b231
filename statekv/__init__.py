"""サイドカー管理の状態ストア（不在時はインメモリ）を HTTP で公開するキーバリューサービス。"""
