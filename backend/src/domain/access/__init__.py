from .policy import Decision, DecisionKind, RouteRule, ROUTE_RULES, decide, decide_for_rule, resolve_rule

__all__ = ["Decision", "DecisionKind", "RouteRule", "ROUTE_RULES", "decide", "decide_for_rule", "resolve_rule"]
