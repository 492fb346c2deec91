from routerank.config.loader import RankingConfig, RankingConfigError, load_ranking_config

__all__ = ["RankingConfig", "RankingConfigError", "load_ranking_config"]
