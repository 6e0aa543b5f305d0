"""バンドルオーバーレイ文書（*.toml）。"""
