"""Mail items: owner inbox, action requests and the operator fulfillment queue"""
