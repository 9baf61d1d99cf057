# Copyright (c) US Inc. All rights reserved.
from .router import api_router
