"""cruschedule: room occupancy queries over CRU timetable exports."""
