#  Copyright © 2025 Bentley Systems, Incorporated
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#      http://www.apache.org/licenses/LICENSE-2.0
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.

from filekit.common.exceptions import FilekitException

__all__ = ["FileProcessingTimeout"]


class FileProcessingTimeout(FilekitException):
    """Raised when a file is still being processed after the maximum wait time."""

    def __init__(self, file_id: str, status: str | None, waited: float) -> None:
        super().__init__(f"File {file_id} was still '{status}' after {waited:.1f} seconds")
        self.file_id = file_id
        self.status = status
        self.waited = waited
