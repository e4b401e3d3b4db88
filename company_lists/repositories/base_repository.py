"""Base repository with common operations for all Supabase repositories."""

from typing import Any, Dict, Optional

from supabase import AsyncClient

from company_lists.errors import StoreError


class BaseRepository:
    """Base repository providing common single-row operations.

    Attributes:
        db_client: Supabase async client instance for database operations.
        table_name: Name of the database table this repository manages.
        id_column: Primary key column of the table.
    """

    def __init__(self, db_client: AsyncClient, table_name: str, id_column: str):
        """Initialize the base repository.

        Args:
            db_client: Supabase async client instance.
            table_name: Name of the database table (e.g., "companies", "lists").
            id_column: Primary key column (e.g., "company_id").
        """
        self.db_client = db_client
        self.table_name = table_name
        self.id_column = id_column

    def table(self):
        return self.db_client.table(self.table_name)

    async def get_row(self, record_id: str) -> Optional[Dict[str, Any]]:
        """Retrieve a single row by its ID.

        Args:
            record_id: The unique identifier of the record.

        Returns:
            Row as dictionary if found, None otherwise.

        Raises:
            StoreError: If the query fails.
        """
        try:
            response = await (
                self.table()
                .select("*")
                .eq(self.id_column, record_id)
                .limit(1)
                .execute()
            )
            return response.data[0] if response.data else None
        except Exception as error:
            raise StoreError(f"get {self.table_name} by ID", str(error)) from error

    async def insert_row(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new row into the table.

        Args:
            data: Dictionary containing row data matching the table schema.

        Returns:
            Dictionary containing the inserted row.

        Raises:
            StoreError: If insertion fails (e.g., constraint violation).
        """
        try:
            response = await self.table().insert(data).execute()
            return response.data[0] if response.data else {}
        except Exception as error:
            raise StoreError(f"create {self.table_name}", str(error)) from error

    async def update_row(self, record_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update a row with new data.

        Args:
            record_id: The unique identifier of the row to update.
            updates: Dictionary of fields to update.

        Returns:
            Updated row, or None when no row was visible to update.

        Raises:
            StoreError: If the update fails.
        """
        try:
            response = await (
                self.table()
                .update(updates)
                .eq(self.id_column, record_id)
                .execute()
            )
            return response.data[0] if response.data else None
        except Exception as error:
            raise StoreError(f"update {self.table_name}", str(error)) from error
