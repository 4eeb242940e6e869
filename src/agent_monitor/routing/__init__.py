from .router import ROUTING_RULES, RoutingRule, classify_text, route, route_from_comment

__all__ = ["ROUTING_RULES", "RoutingRule", "classify_text", "route", "route_from_comment"]
