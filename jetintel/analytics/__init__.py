"""
Derived analytics: flight activity, marketability scoring, owner
disposition and contact ranking. All pure functions of their inputs.
"""
