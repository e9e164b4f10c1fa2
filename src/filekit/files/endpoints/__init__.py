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
"""
Files API
=============

Files are documents uploaded for use with other endpoints, such as fine-tuning, batch processing, or assistants.
Each file is referenced by an opaque identifier returned when it is uploaded.

Endpoints:

* `POST /files` - upload a file as multipart form data.
* `GET /files` - list files, optionally filtered by purpose.
* `GET /files/{file_id}` - retrieve file metadata.
* `DELETE /files/{file_id}` - delete a file.
* `GET /files/{file_id}/content` - retrieve the file content.
"""

from .api import FilesApi

__all__ = [
    "FilesApi",
]
