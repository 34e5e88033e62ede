"""Domain layer for timebill application.

Import services from their modules (``timebill.domain.batch`` etc.).
``timebill.database.base`` imports ``timebill.domain.entities``, so this
package must not import anything that imports the database layer.
"""
