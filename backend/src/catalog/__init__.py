"""Plan catalog: admin-managed packages with cycle prices and cashback rates"""
