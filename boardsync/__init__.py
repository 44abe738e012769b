"""Redmine to Trello board sync service"""
