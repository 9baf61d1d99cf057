# Copyright (c) US Inc. All rights reserved.
